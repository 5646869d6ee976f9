from enum import Enum


class Currency(str, Enum):
    """
    ISO 4217 codes accepted by the payment provider.

    All amounts travel as integer minor units (pesewas, kobo, cents).
    """
    GHS = "GHS"
    NGN = "NGN"
    ZAR = "ZAR"
    KES = "KES"
    USD = "USD"

    def get_symbol(self) -> str:
        return {
            Currency.GHS: "GH₵",
            Currency.NGN: "₦",
            Currency.ZAR: "R",
            Currency.KES: "KSh",
            Currency.USD: "$",
        }[self]

    def format_amount(self, amount_cents: int) -> str:
        """format_amount(123456) -> 'GH₵1234.56' (integer arithmetic only)"""
        sign = "-" if amount_cents < 0 else ""
        major, minor = divmod(abs(amount_cents), 100)
        return f"{sign}{self.get_symbol()}{major}.{minor:02d}"
