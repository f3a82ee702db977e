from pydantic import BaseModel
from decimal import Decimal
from typing import List


class DashboardStats(BaseModel):
    total_earnings: Decimal
    total_invoices: int
    pending_invoices: int
    monthly_growth: Decimal


class MonthlyEarnings(BaseModel):
    month: str
    earnings: Decimal


class MonthlyHistory(BaseModel):
    month: str
    year: int
    total_earnings: Decimal
    paid_earnings: Decimal
    total_invoices: int
    paid_invoices: int
    pending_invoices: int
    overdue_invoices: int
    average_invoice_value: Decimal
    growth: Decimal


class HistoryData(BaseModel):
    year: int
    currency: str
    months: List[MonthlyHistory]
