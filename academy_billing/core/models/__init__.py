from academy_billing.core.models.school_class import SchoolClass
from academy_billing.core.models.so_center import SoCenter, WalletTransaction
from academy_billing.core.models.fee_catalog_entry import FeeCatalogEntry
from academy_billing.core.models.student import Student, StudentLedger
from academy_billing.core.models.fee_calculation_history import FeeCalculationHistory
from academy_billing.core.models.monthly_fee_schedule import MonthlyFeeSchedule
from academy_billing.core.models.payment_record import PaymentRecord

__all__ = [
    "SchoolClass",
    "SoCenter",
    "WalletTransaction",
    "FeeCatalogEntry",
    "Student",
    "StudentLedger",
    "FeeCalculationHistory",
    "MonthlyFeeSchedule",
    "PaymentRecord",
]
