"""
Aging Calculator
Buckets open invoices (AR) and bills (AP) by days past due.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from ledgerlens.insights.schemas import AgingBucket, AgingData
from ledgerlens.insights.utils import round_cents, safe_get
from ledgerlens.integrations.reports.utils import parse_currency_value, parse_report_date

logger = logging.getLogger(__name__)

BUCKET_LIMITS = (
    (30, "current"),
    (60, "days_31_60"),
    (90, "days_61_90"),
)
OVERFLOW_BUCKET = "days_90_plus"


class AgingCalculator:
    """Calculate AR/AP aging buckets from open-item lists."""
    
    @staticmethod
    def bucket_for(days_overdue: Optional[int]) -> str:
        """
        Bucket name for a number of days past due.
        
        Not-yet-due items (negative days) fall in the 0-30 bucket; items
        without a usable date fall in 90+.
        """
        if days_overdue is None:
            return OVERFLOW_BUCKET
        for limit, bucket in BUCKET_LIMITS:
            if days_overdue <= limit:
                return bucket
        return OVERFLOW_BUCKET
    
    @staticmethod
    def bucket_items(
        items: Optional[Iterable[dict[str, Any]]],
        today: Optional[date] = None,
        label: str = "item",
    ) -> AgingBucket:
        """
        Bucket one open-item list.
        
        Args:
            items: Invoices or bills with balance and due/transaction dates
            today: Reference date (defaults to today)
            label: Item kind for log messages
            
        Returns:
            AgingBucket with every bucket and the total rounded to cents
        """
        today = today or date.today()
        sums = {
            "current": Decimal("0"),
            "days_31_60": Decimal("0"),
            "days_61_90": Decimal("0"),
            "days_90_plus": Decimal("0"),
        }
        
        for item in items or []:
            if not isinstance(item, dict):
                continue
            balance = parse_currency_value(safe_get(item, "balance", "Balance"))
            if balance <= 0:
                continue
            
            reference_date = parse_report_date(
                safe_get(item, "due_date", "DueDate")
            ) or parse_report_date(safe_get(item, "txn_date", "TxnDate"))
            
            if reference_date is None:
                logger.warning(
                    "Open %s %s has no valid date, placing it in the 90+ bucket",
                    label,
                    safe_get(item, "id", "Id", default="?"),
                )
                days_overdue = None
            else:
                days_overdue = (today - reference_date).days
            
            sums[AgingCalculator.bucket_for(days_overdue)] += Decimal(str(balance))
        
        total = sum(sums.values(), Decimal("0"))
        return AgingBucket(
            current=round_cents(float(sums["current"])),
            days_31_60=round_cents(float(sums["days_31_60"])),
            days_61_90=round_cents(float(sums["days_61_90"])),
            days_90_plus=round_cents(float(sums["days_90_plus"])),
            total=round_cents(float(total)),
        )
    
    @staticmethod
    def calculate(
        open_invoices: Optional[Iterable[dict[str, Any]]],
        open_bills: Optional[Iterable[dict[str, Any]]],
        today: Optional[date] = None,
    ) -> AgingData:
        """
        Calculate AR aging from open invoices and AP aging from open bills.
        
        Args:
            open_invoices: Customer invoices with an outstanding balance
            open_bills: Supplier bills with an outstanding balance
            today: Reference date (defaults to today)
            
        Returns:
            AgingData with ar and ap buckets
        """
        today = today or date.today()
        aging = AgingData(
            ar=AgingCalculator.bucket_items(open_invoices, today, "invoice"),
            ap=AgingCalculator.bucket_items(open_bills, today, "bill"),
        )
        logger.debug("Aging as of %s: AR total=%.2f, AP total=%.2f", today, aging.ar.total, aging.ap.total)
        return aging
