# checkout_engine/services/snapshot_service.py
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from requests import RequestException

from checkout_engine.domain.errors import OutOfStock, ProductMissing, TransientError
from checkout_engine.services.product_client import ProductClient
from checkout_engine.utils.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ProductSnapshot:
    product_id: int
    price: Decimal
    discount: Decimal
    stock_quantity: int

    @property
    def unit_price(self) -> Decimal:
        return self.price - self.discount


class PriceSnapshotResolver:
    """
    Read-only, point-in-time view of the catalog for a checkout.

    The unit price returned here is what gets frozen into OrderItem.price.
    """

    def __init__(self, product_client: ProductClient):
        self.product_client = product_client

    def resolve(self, quantities: dict[int, int]) -> dict[int, ProductSnapshot]:
        try:
            rows = self.product_client.fetch_products(list(quantities))
        except RequestException as e:
            logger.error(f"Catalog lookup failed for products {sorted(quantities)}: {e}")
            raise TransientError("catalog lookup failed") from e

        snapshots = {}
        for row in rows:
            product_id = int(row["id"])
            if product_id not in quantities:
                continue
            snapshots[product_id] = ProductSnapshot(
                product_id=product_id,
                price=to_money(row["price"]),
                discount=to_money(row.get("discount") or 0),
                stock_quantity=int(row["stock_quantity"]),
            )

        missing = set(quantities) - set(snapshots)
        if missing:
            raise ProductMissing(missing)

        for product_id, requested in quantities.items():
            snap = snapshots[product_id]
            #stock equal to the requested quantity is enough
            if requested > snap.stock_quantity:
                raise OutOfStock(product_id, requested, snap.stock_quantity)

        return snapshots
