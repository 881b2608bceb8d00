"""Built-in locale profiles."""

from receipt_extractor.locales.builtins import DEFAULT_LOCALE, BuiltinLocales

__all__ = ["BuiltinLocales", "DEFAULT_LOCALE"]
