"""Currency formatting for human-readable messages."""

from pydantic import BaseModel, Field


class CurrencyFormatter(BaseModel):
    """Formats currency values for display."""

    currency_symbol: str = Field(default="$", description="Currency symbol")
    decimal_places: int = Field(
        default=0, ge=0, le=10, description="Number of decimal places"
    )
    show_currency_symbol: bool = Field(
        default=True, description="Whether to show currency symbol"
    )

    def format_currency(self, amount: float) -> str:
        """
        Format a currency amount for display.

        Negative amounts carry the sign before the symbol (``-$1,200``).
        """
        rounded = round(abs(amount), self.decimal_places)

        if self.decimal_places > 0:
            formatted = f"{rounded:,.{self.decimal_places}f}"
        else:
            formatted = f"{int(rounded):,}"

        if self.show_currency_symbol:
            formatted = f"{self.currency_symbol}{formatted}"

        sign = "-" if amount < 0 and rounded != 0 else ""
        return f"{sign}{formatted}"
