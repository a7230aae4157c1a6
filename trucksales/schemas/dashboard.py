from pydantic import BaseModel


class StatsSnapshotOut(BaseModel):
    day: str
    sales_today: float
    sales_count_today: int
    collected_today: float
    total_collected: float
    profit_today: float
    total_profit: float
    expenses_today: float
    stores_visited: int
    low_stock: int
