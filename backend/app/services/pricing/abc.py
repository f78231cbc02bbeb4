"""
ABC (Pareto) Classification.

Products are ranked by revenue over a trailing window:
- A: top contributors up to threshold_a of cumulative revenue (default 80%)
- B: the next threshold_b (default 15%, i.e. up to 95%)
- C: the long tail, plus everything without revenue in the window
"""

from typing import Dict, Hashable, Iterable, Mapping, Optional

import pandas as pd


# Keeps exact boundaries (e.g. cumulative 80.0%) inside the lower tier
BOUNDARY_TOLERANCE = 1e-9

SALES_COLUMNS = ['product_id', 'units_sold', 'selling_price', 'purchase_price', 'revenue']


def aggregate_sales(records: Iterable[dict]) -> pd.DataFrame:
    """
    Aggregate sales records into per-product revenue and units.

    Record revenue is (selling_price - purchase_price) * units_sold,
    unless the record carries an explicit revenue value.

    Returns:
        DataFrame indexed by product_id with columns ['revenue', 'units_sold']
    """
    df = pd.DataFrame(list(records), columns=SALES_COLUMNS)
    if df.empty:
        return pd.DataFrame(
            {'revenue': pd.Series(dtype=float), 'units_sold': pd.Series(dtype=float)},
            index=pd.Index([], name='product_id'),
        )

    for col in ['units_sold', 'selling_price', 'purchase_price', 'revenue']:
        df[col] = pd.to_numeric(df[col], errors='coerce')

    derived = (df['selling_price'].fillna(0) - df['purchase_price'].fillna(0)) * df['units_sold'].fillna(0)
    df['revenue'] = df['revenue'].fillna(derived)
    df['units_sold'] = df['units_sold'].fillna(0)

    return df.groupby('product_id')[['revenue', 'units_sold']].sum()


def classify_abc(
    revenue_by_product: Mapping[Hashable, float],
    threshold_a: float = 80.0,
    threshold_b: float = 15.0,
    product_ids: Optional[Iterable[Hashable]] = None
) -> Dict[Hashable, str]:
    """
    Assign A/B/C categories by cumulative revenue share.

    Args:
        revenue_by_product: Revenue per product for the analysis window
        threshold_a: Cumulative % covered by A
        threshold_b: Additional cumulative % covered by B
        product_ids: Full catalog; products missing from the ranking get C

    Returns:
        Mapping of product id to 'A', 'B' or 'C'
    """
    ranked = sorted(
        ((pid, float(rev)) for pid, rev in revenue_by_product.items() if rev and rev > 0),
        key=lambda item: (-item[1], str(item[0])),
    )
    total_revenue = sum(rev for _, rev in ranked)

    categories: Dict[Hashable, str] = {}

    if total_revenue > 0:
        cumulative = 0.0
        for pid, revenue in ranked:
            cumulative += revenue
            cumulative_pct = (cumulative / total_revenue) * 100

            if cumulative_pct <= threshold_a + BOUNDARY_TOLERANCE:
                categories[pid] = 'A'
            elif cumulative_pct <= threshold_a + threshold_b + BOUNDARY_TOLERANCE:
                categories[pid] = 'B'
            else:
                categories[pid] = 'C'

    for pid in revenue_by_product:
        categories.setdefault(pid, 'C')
    for pid in product_ids or []:
        categories.setdefault(pid, 'C')

    return categories


def category_counts(categories: Mapping[Hashable, str]) -> Dict[str, int]:
    """Count products per category."""
    counts = {'A': 0, 'B': 0, 'C': 0}
    for category in categories.values():
        counts[category] += 1
    return counts
