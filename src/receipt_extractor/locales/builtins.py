"""Built-in locale profiles factory.

Provides the keyword tables the extractor ships with. All patterns are
matched against NFKC-normalized lines, so full-width digits and punctuation
(１２３, ￥, ，, ／) appear here in their ASCII forms.
"""

from receipt_extractor.core.locale import DatePattern, LocaleProfile, LocaleRegistry


class BuiltinLocales:
    """Factory class for built-in locale profiles.

    Example:
        ```python
        from receipt_extractor import BuiltinLocales, ReceiptInfoExtractor

        extractor = ReceiptInfoExtractor(locale=BuiltinLocales.japanese())
        result = extractor.extract(ocr_text)
        ```
    """

    @staticmethod
    def japanese() -> LocaleProfile:
        """Create the profile for Japanese receipts.

        Returns:
            LocaleProfile for yen-denominated Japanese receipts.
        """
        return LocaleProfile(
            name="ja_jp",
            description="Japanese receipts: yen amounts, 合計-style totals, Japanese eras",
            total_keywords=[
                "合計",
                "お支払い金額",
                "お支払金額",
                "お支払い",
                "決済金額",
                "お会計",
                "ご請求金額",
                "請求金額",
                "総計",
                "小計",
            ],
            tax_keywords=[
                "税込合計",
                "税込計",
                "税合計",
                "消費税",
                "税額",
                "対象",
            ],
            non_amount_keywords=[
                "お預り",
                "お預かり",
                "預り",
                "お釣り",
                "おつり",
                "釣銭",
                "点数",
                "ポイント",
            ],
            currency_prefixes=["¥", "\\"],
            currency_suffixes=["円"],
            store_reject_keywords=[
                "電話",
                "〒",
                "レジ",
                "担当",
                "責任者",
                "住所",
                "登録番号",
            ],
            store_reject_patterns=[
                r"^\d{4}\s*[/\-.年]",
                r"^[\d\s\-/\\:.,()]+$",
                r"^[¥\\]\s*\d",
                r"^\d[\d,]*\s*円",
                r"(?i)(?<![a-z])tel(?![a-z])",
                r"(?i)^(receipt|invoice)\b",
                r"^(御?領収[書証]|レシート|請求書|納品書)",
                r"^(株式会社|有限会社|合同会社|\(株\)|\(有\))$",
            ],
            date_patterns=[
                DatePattern(
                    name="ymd",
                    pattern=r"(?<!\d)(\d{4})\s*[/\-.年]\s*(\d{1,2})\s*[/\-.月]\s*(\d{1,2})(?!\d)\s*日?",
                    order="ymd",
                ),
                # Shadowed by ymd here; used by tables that drop or reorder ymd
                DatePattern(
                    name="ymd_time",
                    pattern=r"(?<!\d)(\d{4})/(\d{1,2})/(\d{1,2})\s+\d{1,2}:\d{2}",
                    order="ymd",
                ),
                DatePattern(
                    name="mdy",
                    pattern=r"(?<!\d)(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})(?!\d)",
                    order="mdy",
                ),
                DatePattern(
                    name="era",
                    pattern=r"({eras})\s*(\d{1,2}|元)\s*年\s*(\d{1,2})\s*月\s*(\d{1,2})\s*日",
                    order="era",
                ),
            ],
            # 令和1年 = 2019, 平成1年 = 1989, 昭和1年 = 1926
            eras={"令和": 2018, "平成": 1988, "昭和": 1925},
            first_era_year_aliases=["元"],
            tags=["ja", "jpy", "default"],
        )

    @classmethod
    def all_locales(cls) -> list[LocaleProfile]:
        """Get all built-in profiles."""
        return [cls.japanese()]

    @classmethod
    def create_registry(cls) -> LocaleRegistry:
        """Create a registry pre-populated with the built-in profiles."""
        registry = LocaleRegistry()
        for locale in cls.all_locales():
            registry.register(locale)
        return registry


DEFAULT_LOCALE = BuiltinLocales.japanese()
