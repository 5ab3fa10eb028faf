from shubo.models.batch import RawBatch, BatchConfig
from shubo.models.recipe import Recipe
from shubo.models.tank import TankConversion, TankConfig, TankStatus
from shubo.models.daily_record import DailyRecord, DailyEnvironment
from shubo.models.schedule import BrewingPreparation, DischargeSchedule
from shubo.models.settings import Settings
from shubo.models.csv_update import CsvUpdate

__all__ = [
    "RawBatch",
    "BatchConfig",
    "Recipe",
    "TankConversion",
    "TankConfig",
    "TankStatus",
    "DailyRecord",
    "DailyEnvironment",
    "BrewingPreparation",
    "DischargeSchedule",
    "Settings",
    "CsvUpdate",
]
