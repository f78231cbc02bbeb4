import logging
from datetime import date, datetime
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.models import (
    get_db, create_tables,
    Product, SalesRecord, CompetitorPrice, PriceHistory,
    AbcCategory, RecommendationStatus
)
from app.schemas import (
    ProductCreate, ProductResponse,
    SalesRecordCreate, CompetitorPriceCreate, PriceHistoryCreate, BulkInsertResponse,
    PricingAdvice, PriceComparisonResponse,
    RecommendationItem, RecommendationRunResponse, RecommendationStatusUpdate, RecommendationSummary,
    RecommendationStatusType,
    AbcStats, AbcRunResponse,
    ElasticityRequest, ElasticityRunResponse, ElasticityResponse,
    SmartPriceConfigSchema, SmartPriceRequest, SmartPriceItem, SmartPriceResponse,
    AlertItem, AlertRunResponse,
    CategoryMetricsRequest, CategoryMetricsItem, CategoryMetricsResponse
)
from app.services import (
    PriceComparisonService, RecommendationService, AbcService,
    ElasticityService, SmartPriceService, AlertService, CategoryMetricsService
)
from app.services.pricing import (
    PricePosition, calculate_margin, price_position_label,
    is_price_position_risky, has_pricing_opportunity, recommend
)
from app.config.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def _queue_task(task, **kwargs) -> dict:
    """Queue a Celery task; 503 when the broker is unreachable."""
    try:
        queued = task.delay(**kwargs)
    except Exception as e:
        logger.error(f"Failed to queue {task.name}: {e}")
        raise HTTPException(status_code=503, detail=f"Failed to queue task (Redis down?): {str(e)}")
    return {"success": True, "message": "Task started in background", "task_id": str(queued.id)}


# ============== Health & Init ==============

@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}


@router.post("/init-db")
async def initialize_database():
    """Initialize database tables."""
    try:
        create_tables()
        return {"success": True, "message": "Database tables created"}
    except Exception as e:
        logger.error(f"Table creation failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ============== Products ==============

@router.get("/products", response_model=List[ProductResponse])
async def list_products(
    category: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List catalog products."""
    query = db.query(Product)
    if category:
        query = query.filter(Product.category == category)
    return query.order_by(Product.id).all()


@router.post("/products", response_model=ProductResponse, status_code=201)
async def create_product(product: ProductCreate, db: Session = Depends(get_db)):
    """Add a product to the catalog."""
    if db.query(Product).filter(Product.sku == product.sku).first():
        raise HTTPException(status_code=400, detail=f"SKU {product.sku} already exists")

    values = product.model_dump()
    if product.abc_category:
        values["abc_category"] = AbcCategory(product.abc_category.value)

    db_product = Product(**values)
    # Opening entry of the product's price history
    db_product.price_history.append(
        PriceHistory(valid_from=date.today(), regular_price=db_product.current_price)
    )
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    return db_product


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, db: Session = Depends(get_db)):
    """Get a specific product."""
    return _get_product_or_404(db, product_id)


@router.post("/products/{product_id}/sales", response_model=BulkInsertResponse)
async def add_sales(
    product_id: int,
    records: List[SalesRecordCreate],
    db: Session = Depends(get_db)
):
    """Add daily sales records for a product."""
    _get_product_or_404(db, product_id)
    db.add_all([SalesRecord(product_id=product_id, **r.model_dump()) for r in records])
    db.commit()
    return BulkInsertResponse(success=True, rows_added=len(records))


@router.post("/products/{product_id}/competitor-prices", response_model=BulkInsertResponse)
async def add_competitor_prices(
    product_id: int,
    observations: List[CompetitorPriceCreate],
    db: Session = Depends(get_db)
):
    """Record competitor price observations for a product."""
    _get_product_or_404(db, product_id)
    db.add_all([CompetitorPrice(product_id=product_id, **o.model_dump()) for o in observations])
    db.commit()
    return BulkInsertResponse(success=True, rows_added=len(observations))


@router.post("/products/{product_id}/price-history", response_model=BulkInsertResponse)
async def add_price_history(
    product_id: int,
    entries: List[PriceHistoryCreate],
    db: Session = Depends(get_db)
):
    """Record our regular price changes for a product."""
    _get_product_or_404(db, product_id)
    db.add_all([PriceHistory(product_id=product_id, **e.model_dump()) for e in entries])
    db.commit()
    return BulkInsertResponse(success=True, rows_added=len(entries))


# ============== Price Comparison ==============

@router.get("/products/{product_id}/price-comparison", response_model=PriceComparisonResponse)
async def get_price_comparison(product_id: int, db: Session = Depends(get_db)):
    """
    Compare our price against the latest price of each competitor,
    with the rule-table advice for this product.
    """
    service = PriceComparisonService(db)
    product = _get_product_or_404(db, product_id)

    abc_class = product.abc_category.value if product.abc_category else "C"
    target_margin = settings.target_margins.get(abc_class, settings.TARGET_MARGIN_C)
    margin = round(calculate_margin(product.current_price, product.cost_price), 2)

    comparison = service.compare(product)
    if comparison is None:
        return PriceComparisonResponse(
            product_id=product.id,
            our_price=product.current_price,
            current_margin=margin,
            price_position=PricePosition.NO_COMPETITOR_DATA,
            position_label=price_position_label(PricePosition.NO_COMPETITOR_DATA),
        )

    trend = service.sales_trend(product)
    advice = recommend(comparison, margin, target_margin, abc_class, trend)

    return PriceComparisonResponse(
        product_id=product.id,
        our_price=comparison.our_price,
        current_margin=margin,
        price_position=comparison.price_position,
        position_label=price_position_label(comparison.price_position),
        competitor_min_price=comparison.competitor_min_price,
        competitor_avg_price=round(comparison.competitor_avg_price, 2),
        competitor_max_price=comparison.competitor_max_price,
        competitor_discount_price=comparison.competitor_discount_price,
        price_difference_vs_avg=comparison.price_difference_vs_avg,
        price_difference_vs_min=comparison.price_difference_vs_min,
        total_competitors=comparison.total_competitors,
        competitors_with_promo=comparison.competitors_with_promo,
        is_risky=is_price_position_risky(comparison.price_position, margin, target_margin),
        has_opportunity=has_pricing_opportunity(comparison.price_position, margin, target_margin),
        sales_trend=trend.value,
        advice=PricingAdvice(
            action=advice.action,
            suggested_price=advice.suggested_price,
            reason=advice.reason,
            confidence=advice.confidence,
        ),
    )


# ============== ABC ==============

@router.post("/calculate-abc")
async def calculate_abc(
    background: bool = Query(False, description="Run in background (Celery)"),
    db: Session = Depends(get_db)
):
    """Recalculate ABC categories for the whole catalog."""
    if background:
        from app.tasks import calculate_abc_async
        return _queue_task(calculate_abc_async)

    stats = AbcService(db).run()
    return AbcRunResponse(
        success=True,
        message="ABC categories calculated successfully",
        stats=AbcStats(**stats),
    )


# ============== Elasticity ==============

@router.post("/calculate-elasticity")
async def calculate_elasticity(
    request: ElasticityRequest,
    background: bool = Query(False, description="Run in background (Celery)"),
    db: Session = Depends(get_db)
):
    """Recalculate elasticity for one product or all products."""
    if request.product_id is not None:
        _get_product_or_404(db, request.product_id)

    if background:
        from app.tasks import calculate_elasticity_async
        return _queue_task(
            calculate_elasticity_async,
            product_id=request.product_id,
            period_days=request.period_days
        )

    processed = ElasticityService(db).calculate(request.product_id, request.period_days)
    return ElasticityRunResponse(
        message=f"Calculated elasticity for {processed} products",
        products_processed=processed,
    )


@router.get("/elasticity/{product_id}", response_model=ElasticityResponse)
async def get_elasticity(product_id: int, db: Session = Depends(get_db)):
    """Stored elasticity estimate for a product."""
    _get_product_or_404(db, product_id)
    estimate = ElasticityService(db).get(product_id)
    if not estimate:
        raise HTTPException(status_code=404, detail="No elasticity estimate for this product")
    return estimate


# ============== Recommendations ==============

@router.post("/generate-recommendations")
async def generate_recommendations(
    period_days: Optional[int] = Query(default=None, ge=1, le=365),
    background: bool = Query(False, description="Run in background (Celery)"),
    db: Session = Depends(get_db)
):
    """
    Regenerate pricing recommendations for the whole catalog.
    Replaces every NEW recommendation; applied/dismissed ones are kept.
    """
    if background:
        from app.tasks import generate_recommendations_async
        return _queue_task(generate_recommendations_async, period_days=period_days)

    saved, replaced = RecommendationService(db).regenerate(period_days)
    return RecommendationRunResponse(
        success=True,
        count=saved,
        replaced=replaced,
        message=f"Generated {saved} pricing recommendations",
    )


def _to_item(rec) -> RecommendationItem:
    item = RecommendationItem.model_validate(rec)
    if rec.product:
        item.sku = rec.product.sku
        item.product_name = rec.product.name
    return item


@router.get("/recommendations", response_model=List[RecommendationItem])
async def list_recommendations(
    status: Optional[RecommendationStatusType] = None,
    db: Session = Depends(get_db)
):
    """List recommendations, optionally filtered by status."""
    service = RecommendationService(db)
    db_status = RecommendationStatus(status.value) if status else None
    return [_to_item(r) for r in service.list_recommendations(db_status)]


@router.get("/recommendations/summary", response_model=RecommendationSummary)
async def get_recommendation_summary(db: Session = Depends(get_db)):
    """Quick summary of pending recommendations."""
    return RecommendationSummary(**RecommendationService(db).get_summary())


@router.patch("/recommendations/{recommendation_id}", response_model=RecommendationItem)
async def update_recommendation(
    recommendation_id: int,
    update: RecommendationStatusUpdate,
    db: Session = Depends(get_db)
):
    """Apply or dismiss a recommendation."""
    rec = RecommendationService(db).update_status(
        recommendation_id, RecommendationStatus(update.status.value)
    )
    if not rec:
        raise HTTPException(status_code=404, detail="Recommendation not found")
    return _to_item(rec)


# ============== Smart Prices ==============

@router.get("/smart-price-config", response_model=SmartPriceConfigSchema)
async def get_smart_price_config(db: Session = Depends(get_db)):
    """Current promo price guardrails."""
    return SmartPriceConfigSchema(**vars(SmartPriceService(db).get_config()))


@router.put("/smart-price-config", response_model=SmartPriceConfigSchema)
async def update_smart_price_config(
    config: SmartPriceConfigSchema,
    db: Session = Depends(get_db)
):
    """Replace the promo price guardrails."""
    updated = SmartPriceService(db).update_config(config.model_dump())
    return SmartPriceConfigSchema(**vars(updated))


@router.post("/smart-prices", response_model=SmartPriceResponse)
async def generate_smart_prices(
    request: SmartPriceRequest,
    db: Session = Depends(get_db)
):
    """Generate promo prices for the filtered active products."""
    service = SmartPriceService(db)
    results = service.generate(
        product_ids=request.product_ids,
        category=request.category,
        abc_class=request.abc_class.value if request.abc_class else None,
    )

    if not results:
        total = db.query(Product).count()
        detail = (
            "No products found. Load product data first."
            if total == 0
            else "No products match the given filters."
        )
        raise HTTPException(status_code=404, detail=detail)

    return SmartPriceResponse(
        message=f"Generated smart prices for {len(results)} products",
        smart_prices=[SmartPriceItem.model_validate(r) for r in results],
    )


# ============== Alerts ==============

@router.post("/generate-alerts")
async def generate_alerts(
    background: bool = Query(False, description="Run in background (Celery)"),
    db: Session = Depends(get_db)
):
    """
    Check the catalog for low margins and competitor price drops.
    Replaces every unread alert; read ones are kept.
    """
    if background:
        from app.tasks import generate_alerts_async
        return _queue_task(generate_alerts_async)

    count = AlertService(db).regenerate()
    return AlertRunResponse(success=True, count=count, message=f"Generated {count} alerts")


@router.get("/alerts", response_model=List[AlertItem])
async def list_alerts(
    unread_only: bool = False,
    db: Session = Depends(get_db)
):
    """List alerts, newest first."""
    return AlertService(db).list_alerts(unread_only)


@router.patch("/alerts/{alert_id}/read", response_model=AlertItem)
async def mark_alert_read(alert_id: int, db: Session = Depends(get_db)):
    """Mark an alert as read so the next run keeps it."""
    alert = AlertService(db).mark_read(alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


# ============== Category Metrics ==============

@router.post("/calculate-category-metrics", response_model=CategoryMetricsResponse)
async def calculate_category_metrics(
    request: CategoryMetricsRequest,
    db: Session = Depends(get_db)
):
    """Roll up revenue, units and promo share per category."""
    rows = CategoryMetricsService(db).calculate(request.category, request.period_days)
    if request.category and not rows:
        raise HTTPException(status_code=404, detail=f"No active products in category {request.category}")

    return CategoryMetricsResponse(
        message=f"Calculated metrics for {len(rows)} categories",
        categories=[CategoryMetricsItem.model_validate(r) for r in rows],
    )


@router.get("/category-metrics", response_model=List[CategoryMetricsItem])
async def list_category_metrics(
    category: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Stored category metrics, latest period first."""
    return CategoryMetricsService(db).list_metrics(category)
