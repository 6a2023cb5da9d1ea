# ==============================================================================
# SERVICIO DE ESTADÍSTICAS DEL PANEL
# ==============================================================================
# Calcula los indicadores del panel de control a partir del estado.
#
# REGLA PRINCIPAL: las ventas "Anulado" no cuentan en ningún total.
# - Pendiente  -> por cobrar
# - Cancelado  -> pagada
# - Anulado    ❌
# ==============================================================================

from collections import defaultdict
from datetime import datetime
from typing import Any, Callable, Dict, List

from fruteria_admin.models import AppState, SaleStatus

# Tasa estimada de impuesto sobre las ventas (régimen simplificado)
TAX_RATE = 0.015

MONTH_NAMES = ['Ene', 'Feb', 'Mar', 'Abr', 'May', 'Jun', 'Jul', 'Ago', 'Sep', 'Oct', 'Nov', 'Dic']


class StatsService:
    """
    Servicio para los indicadores del panel.

    Responsabilidades:
    - Totales de ventas por estado
    - Ventas mensuales del año (en la moneda de visualización)
    - Ranking de productos y clientes
    - Formato de montos según moneda
    """

    def __init__(self, state_loader: Callable[[], AppState]):
        """
        Args:
            state_loader: Función que retorna el estado actual
                          (permite inyectar un estado fijo en tests)
        """
        self._state_loader = state_loader

    @property
    def state(self) -> AppState:
        return self._state_loader()

    def _valid_sales(self) -> List[Dict[str, Any]]:
        return [s for s in self.state.sales if s.get('saleStatus') != SaleStatus.ANULADO.value]

    def _to_display(self, amount: float) -> float:
        """Convierte un monto en soles a la moneda de visualización."""
        state = self.state
        if state.currency == 'PEN' or not state.exchangeRate:
            return amount
        return amount / state.exchangeRate

    def format_money(self, value: float) -> str:
        """
        Formatea un monto en soles para mostrar.

        Ejemplos:
            PEN: 10 -> "S/ 10.00"
            USD (tc 3.75): 10 -> "$ 2.67"
        """
        symbol = 'S/' if self.state.currency == 'PEN' else '$'
        return f'{symbol} {self._to_display(float(value or 0)):.2f}'

    def summary(self) -> Dict[str, Any]:
        """
        Indicadores generales.

        Returns:
            Dict con totalSales, pendingSales, canceledSales, tax,
            productsSold y conteos de entidades/documentos
        """
        state = self.state
        valid = self._valid_sales()

        total_sales = sum(float(s.get('total', 0) or 0) for s in valid)
        pending = sum(float(s.get('total', 0) or 0) for s in valid
                      if s.get('saleStatus') == SaleStatus.PENDIENTE.value)
        paid = sum(float(s.get('total', 0) or 0) for s in valid
                   if s.get('saleStatus') == SaleStatus.CANCELADO.value)
        products_sold = sum(
            float(item.get('quantity', 0) or 0)
            for s in state.sales
            for item in s.get('items') or []
        )

        return {
            'totalSales': round(total_sales, 2),
            'pendingSales': round(pending, 2),
            'canceledSales': round(paid, 2),
            'tax': round(total_sales * TAX_RATE, 2),
            'productsSold': products_sold,
            'clientCount': len(state.clients),
            'productCount': len(state.products),
            'supplierCount': len(state.suppliers),
            'docsEmitidos': sum(1 for s in state.sales if s.get('docStatus') == 'Emitido'),
            'docsPendientes': sum(1 for s in state.sales if s.get('docStatus') == 'Pendiente'),
        }

    def monthly_sales(self, year: int = None) -> List[Dict[str, Any]]:
        """
        Ventas por mes del año indicado (por defecto el actual).

        Returns:
            12 buckets [{'name': 'Ene', 'ventas': float, 'cantidad': int}, ...]
        """
        year = year or datetime.now().year
        data = [{'name': m, 'ventas': 0.0, 'cantidad': 0} for m in MONTH_NAMES]
        for sale in self._valid_sales():
            try:
                sale_year, sale_month = (int(p) for p in str(sale.get('date', '')).split('-')[:2])
            except ValueError:
                continue
            if sale_year != year or not 1 <= sale_month <= 12:
                continue
            bucket = data[sale_month - 1]
            bucket['ventas'] += self._to_display(float(sale.get('total', 0) or 0))
            bucket['cantidad'] += 1
        for bucket in data:
            bucket['ventas'] = round(bucket['ventas'], 2)
        return data

    def top_products(self, limit: int = 5) -> List[Dict[str, Any]]:
        """Productos más vendidos por cantidad."""
        counts = defaultdict(float)
        for sale in self._valid_sales():
            for item in sale.get('items') or []:
                counts[item.get('productName', '')] += float(item.get('quantity', 0) or 0)
        ranking = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
        return [{'name': name, 'qty': qty} for name, qty in ranking[:limit]]

    def top_clients(self, limit: int = 5) -> List[Dict[str, Any]]:
        """Clientes con mayor monto comprado."""
        totals = defaultdict(float)
        for sale in self._valid_sales():
            totals[sale.get('clientName', '')] += float(sale.get('total', 0) or 0)
        ranking = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
        return [{'name': name, 'total': round(total, 2)} for name, total in ranking[:limit]]
