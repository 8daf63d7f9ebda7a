from decimal import Decimal

from django.utils import timezone

import openpyxl
from openpyxl.styles import Font, Alignment, PatternFill
from openpyxl.utils import get_column_letter

from core.id_converter import get_display_id

SALES_REPORT_HEADERS = [
    'Order', 'Numeric ID', 'Date', 'Customer', 'Source',
    'Payment Method', 'Payment Status', 'Status', 'Subtotal', 'Tax', 'Discount', 'Total',
]


def build_sales_workbook(sales, config):
    """Excel workbook with one row per sale plus a totals row"""
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.title = 'Sales'

    header_font = Font(bold=True, color='FFFFFF')
    header_fill = PatternFill(start_color='4F81BD', end_color='4F81BD', fill_type='solid')
    for column, title in enumerate(SALES_REPORT_HEADERS, start=1):
        cell = sheet.cell(row=1, column=column, value=title)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal='center')

    grand_total = Decimal('0')
    row = 1
    for row, sale in enumerate(sales, start=2):
        customer = sale.customer.name if sale.customer else sale.customer_name
        sheet.append([
            get_display_id(sale.id, config.display_id_length).upper(),
            sale.related_id,
            timezone.localtime(sale.sale_date).strftime('%Y-%m-%d %H:%M'),
            customer or 'Walk-in Customer',
            sale.get_source_display(),
            sale.get_payment_method_display(),
            sale.get_payment_status_display(),
            sale.get_status_display(),
            float(sale.subtotal),
            float(sale.tax_amount),
            float(sale.discount_amount),
            float(sale.total_amount),
        ])
        grand_total += sale.total_amount

    total_row = row + 1
    sheet.cell(row=total_row, column=len(SALES_REPORT_HEADERS) - 1, value='Total').font = Font(bold=True)
    sheet.cell(row=total_row, column=len(SALES_REPORT_HEADERS), value=float(grand_total)).font = Font(bold=True)

    for column in range(1, len(SALES_REPORT_HEADERS) + 1):
        sheet.column_dimensions[get_column_letter(column)].width = 16

    return workbook
