"""Margin helpers. Margins are percentages of the selling price."""


def calculate_margin(price: float, cost: float) -> float:
    """(price - cost) / price as a percentage; 0 for a non-positive price."""
    if price <= 0:
        return 0.0
    return ((price - cost) / price) * 100


def price_for_margin(cost: float, margin_percent: float) -> float:
    """Selling price that yields the given margin on cost."""
    if margin_percent >= 100:
        raise ValueError(f"Margin must be below 100%, got {margin_percent}")
    return cost / (1 - margin_percent / 100)
