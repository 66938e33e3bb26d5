from __future__ import annotations

import logging
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from ils.domain.models import Actor

log = logging.getLogger(__name__)


class ReportingService:
    def __init__(self, repo, auth):
        self.repo = repo
        self.auth = auth

    def export_dashboard_excel(self, actor: Optional[Actor], path: str) -> None:
        self.auth.require_action(actor, "export_report")
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, end_col: int):
            if ws.max_row < 2:
                return
            ref = f"A1:{get_column_letter(end_col)}{ws.max_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        cards = self.repo.card_totals()

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = "Dashboard"
        ws["A1"].font = Font(bold=True, size=14)

        rows = [
            ("Collected", cards.total_paid, "money"),
            ("Pending", cards.total_pending, "money"),
            ("Total Orders", cards.number_of_orders, "int"),
            ("Total Products", cards.number_of_products, "int"),
            ("In stock", cards.products_in_stock, "int"),
            ("Out of stock", cards.products_out_of_stock, "int"),
            ("Total Customers", cards.number_of_customers, "int"),
        ]
        start_row = 3
        for i, (label, val, kind) in enumerate(rows):
            r = start_row + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = val
            if kind == "money":
                money(ws[f"B{r}"])
        set_widths(ws, {"A": 22, "B": 18})

        # -------- 2) Revenue --------
        ws2 = wb.create_sheet("Revenue")
        ws2.append(["Month", "Revenue"])
        bold_row(ws2, 1)
        for m in self.repo.list_revenue():
            ws2.append([m.month, m.revenue])
            money(ws2[f"B{ws2.max_row}"])
        ws2.freeze_panes = "A2"
        set_widths(ws2, {"A": 12, "B": 16})
        add_table(ws2, "RevenueByMonth", 2)

        # -------- 3) Orders --------
        ws3 = wb.create_sheet("Orders")
        ws3.append(["Order ID", "Date", "Customer", "Email", "Product", "Qty", "Amount", "Status"])
        bold_row(ws3, 1)
        total_orders = self.repo.count_orders("")
        for o in self.repo.search_orders("", max(total_orders, 1), 0):
            ws3.append([
                o.id, o.date, o.customer_name, o.customer_email,
                o.product_name, int(o.quantity), o.amount, o.status,
            ])
            money(ws3[f"G{ws3.max_row}"])
        ws3.freeze_panes = "A2"
        set_widths(ws3, {"A": 38, "B": 12, "C": 24, "D": 28, "E": 34, "F": 6, "G": 14, "H": 10})
        add_table(ws3, "OrdersDetail", 8)

        # -------- 4) Products --------
        ws4 = wb.create_sheet("Products")
        ws4.append(["Product ID", "Name", "Category", "Price", "Stock", "Expiry", "Status"])
        bold_row(ws4, 1)
        for p in self.repo.list_products():
            ws4.append([p.id, p.name, p.category, p.price, int(p.stock), p.expiry, p.status])
            money(ws4[f"D{ws4.max_row}"])
        ws4.freeze_panes = "A2"
        set_widths(ws4, {"A": 38, "B": 34, "C": 18, "D": 12, "E": 8, "F": 12, "G": 14})
        add_table(ws4, "ProductsStock", 7)

        wb.save(path)
        log.info("dashboard_exported path=%s orders=%s", path, total_orders)
