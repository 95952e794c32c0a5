from stockledger.agents.base_agent import BaseAgent
from stockledger.agents.inventory_analyst import InventoryAnalystAgent

__all__ = [
    "BaseAgent",
    "InventoryAnalystAgent",
]
