# ==============================================================================
# SERVICIO DE REPORTES - Ventas, movimientos y panel principal
# ==============================================================================
# Los rangos se calculan en fechas UTC:
#   today  → hoy
#   week   → hoy - 7 días … hoy
#   month  → mismo día del mes anterior … hoy
#   custom → start … end (YYYY-MM-DD)
# El fin del rango incluye todo el día (hasta 23:59:59).
#
# Exportación CSV con encabezados en español y filas de totales al final.
# ==============================================================================

import calendar
import csv
import io
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from discobar.errors import ValidationError
from discobar.models import PAYMENT_LABELS, TableStatus
from discobar.performance_logger import profile_function
from discobar.repositories.movement_repository import MovementRepository
from discobar.repositories.order_repository import OrderRepository
from discobar.repositories.product_repository import ProductRepository
from discobar.repositories.sale_repository import SaleRepository
from discobar.repositories.table_repository import TableRepository
from discobar.repositories.user_repository import UserRepository

VALID_PERIODS = ('today', 'week', 'month', 'custom')


def _month_back(day: date) -> date:
    """Mismo día del mes anterior (ajustado al último día si no existe)."""
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def _parse_day(value: str, label: str) -> date:
    try:
        return datetime.strptime((value or '').strip(), '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError(f'Fecha {label} inválida (use AAAA-MM-DD)')


def date_range(
    period: str,
    start: str = None,
    end: str = None,
    today: date = None
) -> Tuple[datetime, datetime]:
    """
    Calcula el rango de fechas según el período solicitado.

    Args:
        period: 'today', 'week', 'month', 'custom'
        start: Fecha inicio para 'custom' (YYYY-MM-DD)
        end: Fecha fin para 'custom' (YYYY-MM-DD)
        today: Fecha de referencia (por defecto hoy en UTC)

    Returns:
        Tupla (inicio, fin) en UTC, fin inclusive

    Raises:
        ValidationError: Período desconocido o fechas inválidas
    """
    period = (period or 'today').strip().lower()
    if period not in VALID_PERIODS:
        raise ValidationError(f'Período inválido: {period}')

    today = today or datetime.now(timezone.utc).date()

    if period == 'today':
        first, last = today, today
    elif period == 'week':
        first, last = today - timedelta(days=7), today
    elif period == 'month':
        first, last = _month_back(today), today
    else:
        if not start or not end:
            raise ValidationError('Indica fecha de inicio y fin')
        first, last = _parse_day(start, 'de inicio'), _parse_day(end, 'de fin')
        if first > last:
            raise ValidationError('La fecha de inicio es posterior a la de fin')

    return (
        datetime.combine(first, time.min, tzinfo=timezone.utc),
        datetime.combine(last, time(23, 59, 59, 999999), tzinfo=timezone.utc),
    )


def _parse_ts(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        ts = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except (ValueError, TypeError):
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _in_range(value: str, start: datetime, end: datetime) -> bool:
    ts = _parse_ts(value)
    return ts is not None and start <= ts <= end


def _format_ts(value: str) -> str:
    ts = _parse_ts(value)
    return ts.strftime('%Y-%m-%d %H:%M') if ts else ''


class ReportService:
    """
    Reportes para administración.

    Responsabilidades:
    - Reporte de ventas por período (totales por método de pago)
    - Historial de movimientos de inventario (entradas/salidas)
    - Indicadores del panel principal
    - Exportación CSV
    """

    def __init__(
        self,
        sale_repo: SaleRepository,
        order_repo: OrderRepository,
        table_repo: TableRepository,
        product_repo: ProductRepository,
        movement_repo: MovementRepository,
        user_repo: UserRepository
    ):
        self.sale_repo = sale_repo
        self.order_repo = order_repo
        self.table_repo = table_repo
        self.product_repo = product_repo
        self.movement_repo = movement_repo
        self.user_repo = user_repo

    def _user_names(self) -> Dict[str, str]:
        return {
            uid: (u.get('full_name') or u.get('email') or '')
            for uid, u in self.user_repo.get_all().items()
        }

    # =========================================================================
    # VENTAS
    # =========================================================================

    @profile_function(name='Reporte de ventas')
    def sales_report(
        self,
        period: str = 'today',
        start: str = None,
        end: str = None,
        search: str = None
    ) -> Dict[str, Any]:
        """
        Ventas del período, más recientes primero.

        Returns:
            {
                'start', 'end': rango aplicado (YYYY-MM-DD),
                'sales': [venta + client_name, table_number, processed_by_name, payment_label],
                'total_revenue': float,
                'count': int,
                'by_method': {metodo: total}
            }
        """
        range_start, range_end = date_range(period, start, end)
        orders = self.order_repo.get_all()
        tables = self.table_repo.get_all()
        names = self._user_names()

        rows = []
        for sale in self.sale_repo.list_newest_first():
            if not _in_range(sale.get('created_at'), range_start, range_end):
                continue
            order = orders.get(sale.get('order_id')) or {}
            table = tables.get(order.get('table_id')) or {}
            row = dict(sale)
            row['client_name'] = order.get('client_name', '')
            row['table_number'] = table.get('number')
            row['processed_by_name'] = names.get(sale.get('processed_by'), '')
            row['payment_label'] = PAYMENT_LABELS.get(sale.get('payment_method'), sale.get('payment_method', ''))
            rows.append(row)

        q = (search or '').strip().lower()
        if q:
            rows = [
                r for r in rows
                if q in (r['client_name'] or '').lower()
                or q in r['payment_label'].lower()
                or q in (r['processed_by_name'] or '').lower()
                or q in str(r['table_number'] or '')
            ]

        by_method: Dict[str, float] = defaultdict(float)
        for r in rows:
            by_method[r.get('payment_method')] += float(r.get('amount', 0))

        return {
            'start': range_start.date().isoformat(),
            'end': range_end.date().isoformat(),
            'sales': rows,
            'total_revenue': round(sum(float(r.get('amount', 0)) for r in rows), 2),
            'count': len(rows),
            'by_method': {k: round(v, 2) for k, v in by_method.items()},
        }

    def export_sales_csv(self, period: str = 'today', start: str = None, end: str = None, search: str = None) -> str:
        report = self.sales_report(period, start, end, search)
        si = io.StringIO()
        cw = csv.writer(si)
        cw.writerow(['Fecha', 'Mesa', 'Cliente', 'Método de Pago', 'Procesado por', 'Monto'])
        for r in report['sales']:
            cw.writerow([
                _format_ts(r.get('created_at')),
                r.get('table_number') or '',
                r.get('client_name') or '',
                r.get('payment_label'),
                r.get('processed_by_name') or '',
                f"{float(r.get('amount', 0)):.2f}",
            ])
        cw.writerow([])
        cw.writerow(['', '', '', '', 'TOTAL', f"{report['total_revenue']:.2f}"])
        return si.getvalue()

    # =========================================================================
    # MOVIMIENTOS DE INVENTARIO
    # =========================================================================

    @profile_function(name='Reporte de movimientos')
    def movements_report(
        self,
        period: str = 'week',
        start: str = None,
        end: str = None,
        search: str = None
    ) -> Dict[str, Any]:
        """
        Movimientos del período con nombre de producto y autor.

        total_out es la suma de las salidas (valor negativo).
        """
        range_start, range_end = date_range(period, start, end)
        products = self.product_repo.get_all()
        names = self._user_names()

        rows = []
        for movement in self.movement_repo.list_newest_first():
            if not _in_range(movement.get('created_at'), range_start, range_end):
                continue
            row = dict(movement)
            change = int(movement.get('quantity_change', 0))
            row['product_name'] = (products.get(movement.get('product_id')) or {}).get('name', '')
            row['created_by_name'] = names.get(movement.get('created_by'), '')
            row['kind'] = 'Entrada' if change > 0 else 'Salida'
            rows.append(row)

        q = (search or '').strip().lower()
        if q:
            rows = [
                r for r in rows
                if q in r['product_name'].lower()
                or q in (r.get('reason') or '').lower()
                or q in r['created_by_name'].lower()
            ]

        changes = [int(r.get('quantity_change', 0)) for r in rows]
        return {
            'start': range_start.date().isoformat(),
            'end': range_end.date().isoformat(),
            'movements': rows,
            'total_in': sum(c for c in changes if c > 0),
            'total_out': sum(c for c in changes if c < 0),
        }

    def export_movements_csv(self, period: str = 'week', start: str = None, end: str = None, search: str = None) -> str:
        report = self.movements_report(period, start, end, search)
        si = io.StringIO()
        cw = csv.writer(si)
        cw.writerow(['Fecha', 'Producto', 'Cambio', 'Tipo', 'Razón', 'Realizado por'])
        for r in report['movements']:
            cw.writerow([
                _format_ts(r.get('created_at')),
                r.get('product_name') or '—',
                r.get('quantity_change'),
                r.get('kind'),
                r.get('reason', ''),
                r.get('created_by_name') or '—',
            ])
        cw.writerow([])
        cw.writerow(['', '', '', '', 'Total Entradas', report['total_in']])
        cw.writerow(['', '', '', '', 'Total Salidas', report['total_out']])
        return si.getvalue()

    # =========================================================================
    # PANEL PRINCIPAL
    # =========================================================================

    def dashboard(self, today: date = None) -> Dict[str, Any]:
        """Indicadores del día para el panel de administración."""
        start, end = date_range('today', today=today)
        tables = self.table_repo.list_all()
        orders_today = [o for o in self.order_repo.list_all() if _in_range(o.get('created_at'), start, end)]
        sales_today = [s for s in self.sale_repo.get_all() if _in_range(s.get('created_at'), start, end)]

        return {
            'total_tables': len(tables),
            'occupied_tables': sum(1 for t in tables if t.get('status') == TableStatus.OCUPADA.value),
            'total_products': len(self.product_repo.get_all()),
            'today_orders': len(orders_today),
            'today_revenue': round(sum(float(s.get('amount', 0)) for s in sales_today), 2),
        }
