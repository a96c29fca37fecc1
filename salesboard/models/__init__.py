"""
Модели данных модуля планов продаж и мотивации.
"""

from .branch import Branch
from .user import User
from .sales_journal import CashierSalesJournal
from .weight_profile import WeightProfile
from .monthly_target import MonthlyTarget
from .daily_allocation import DailyAllocation
from .shift_allocation import ShiftAllocation
from .season import SeasonHoliday
from .incentive import IncentiveTier, IncentiveAward
from .commission import CommissionRate, CommissionCalculation
from .branch_daily_sales import BranchDailySales

__all__ = [
    "Branch",
    "User",
    "CashierSalesJournal",
    "WeightProfile",
    "MonthlyTarget",
    "DailyAllocation",
    "ShiftAllocation",
    "SeasonHoliday",
    "IncentiveTier",
    "IncentiveAward",
    "CommissionRate",
    "CommissionCalculation",
    "BranchDailySales",
]
