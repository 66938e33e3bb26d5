import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from ils.domain.models import Actor  # noqa: E402

ADMIN = Actor(role="admin", name="tester")
VIEWER = Actor(role="user", name="viewer")
TODAY = date(2024, 3, 15)


def build(tmp_path: Path, name: str = "t.db", today=lambda: TODAY):
    from ils.application.container import build_container

    return build_container(tmp_path / name, today=today)


def seed_basics(app, stock: int = 10, price: str = "2.00"):
    """One customer and one snacks product, the usual starting point."""
    cid = app.repo.add_customer("Ada Lovelace", "ada@example.com", "/customers/ada.png")
    product = app.products.create(ADMIN, "Pretzels", "snacks", Decimal(price), stock)
    return cid, product
