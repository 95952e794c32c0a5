"""Inventory Analyst Agent - AI written stock and logistics report.

Reads a snapshot of warehouses, products, stock and recent transactions
and asks a Bedrock model for a short Markdown report covering:

- stock health (critically low or slow moving products)
- distribution between warehouses
- sales trend from recent transactions
- three concrete actions for the warehouse manager

The call never affects ledger state. Any failure is turned into a fixed
fallback message.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from stockledger.agents.base_agent import BaseAgent
from stockledger.models.serialization import to_json

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a professional logistics and inventory assistant."
FALLBACK_MESSAGE = "Could not reach the AI service. Check that the Bedrock connection is configured."
EMPTY_REPORT_MESSAGE = "No analysis report is available right now."


class InventoryAnalystAgent(BaseAgent):
    """Produces an AI inventory analysis report."""

    def __init__(self, region_name: str = "us-west-2", model_id: str = "us.amazon.nova-lite-v1:0", **kwargs: Any):
        super().__init__(
            agent_name="InventoryAnalystAgent",
            model_id=model_id,
            region_name=region_name,
            **kwargs,
        )

    def build_prompt(self, context: dict) -> str:
        data = {key: json.dumps(to_json(context.get(key, [])), ensure_ascii=False)
                for key in ("warehouses", "products", "inventory", "transactions")}
        return (
            "You are an inventory and logistics analyst.\n"
            "Analyse the current stock, transactions and warehouse distribution.\n\n"
            f"- Warehouses: {data['warehouses']}\n"
            f"- Products: {data['products']}\n"
            f"- Stock levels: {data['inventory']}\n"
            f"- Recent transactions: {data['transactions']}\n\n"
            "Write a short but insightful report that includes:\n"
            "1. **Stock health**: products that are dangerously low or slow moving.\n"
            "2. **Distribution**: whether goods should move between warehouses.\n"
            "3. **Sales trend**: which products move fastest, based on transactions.\n"
            "4. **Actions**: three concrete recommendations for the warehouse manager.\n\n"
            "Answer in Markdown with a professional tone."
        )

    def analyze_inventory(self, context: dict) -> str:
        """Returns the report text, or a fallback message on any failure."""
        prompt = self.build_prompt(context)
        try:
            report = self.invoke_model(prompt, system=SYSTEM_PROMPT, max_tokens=1500, temperature=0.3)
        except Exception as e:
            logger.warning("Inventory analysis failed: %s", e)
            return FALLBACK_MESSAGE

        self.log_decision(
            decision_type="inventory_analysis",
            input_data={
                "products": len(context.get("products", [])),
                "transactions": len(context.get("transactions", [])),
            },
            output_data={"report_length": len(report)},
            reasoning="Inventory analysis report generated.",
        )
        return report or EMPTY_REPORT_MESSAGE

    def process(self, context: dict) -> dict:
        return {"agent": self.agent_name, "report": self.analyze_inventory(context)}
