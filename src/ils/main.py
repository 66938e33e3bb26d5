from __future__ import annotations

import argparse
import logging

from ils.application.container import build_container
from ils.config import get_app_paths, load_settings
from ils.domain.models import Actor
from ils.domain.money import format_money
from ils.logging_config import setup_logging

log = logging.getLogger(__name__)

OPERATOR = Actor(role="admin", name="cli")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="ils", description="Inventory ledger maintenance")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init", help="create or migrate the database")
    sub.add_parser("summary", help="print the dashboard cards and monthly revenue")
    sub.add_parser("rebuild-revenue", help="recompute every monthly revenue total")
    export = sub.add_parser("export", help="write the dashboard to an Excel file")
    export.add_argument("path")
    args = parser.parse_args(argv)

    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)
    container = build_container(paths.db_path, settings=load_settings())
    log.info("storage_ready db=%s command=%s", paths.db_path, args.command)

    if args.command == "summary":
        cards = container.queries.card_data()
        print(f"Collected       {format_money(cards.total_paid)}")
        print(f"Pending         {format_money(cards.total_pending)}")
        print(f"Total Orders    {cards.number_of_orders}")
        print(f"Total Products  {cards.number_of_products} ({cards.products_out_of_stock} out of stock)")
        print(f"Total Customers {cards.number_of_customers}")
        for m in container.queries.revenue():
            print(f"{m.month}  {format_money(m.revenue)}")
    elif args.command == "rebuild-revenue":
        months = container.revenue.rebuild_all(OPERATOR)
        print(f"Recomputed {len(months)} month(s).")
    elif args.command == "export":
        container.reporting.export_dashboard_excel(OPERATOR, args.path)
        print(f"Exported dashboard to {args.path}")


if __name__ == "__main__":
    main()
