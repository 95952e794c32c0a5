"""Base class for agents backed by an Amazon Bedrock model."""

from __future__ import annotations

import json
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from stockledger.ledger.errors import ExternalServiceError
from stockledger.models.inventory import AgentDecision

logger = logging.getLogger(__name__)


class BaseAgent(ABC):
    """Bedrock-backed agent base class."""

    def __init__(
        self,
        agent_name: str,
        model_id: str,
        region_name: str = "us-west-2",
        bedrock_runtime_client: Optional[Any] = None,
    ):
        self.agent_name = agent_name
        self.model_id = model_id
        self.region_name = region_name

        # Injected in tests
        self.bedrock_runtime = bedrock_runtime_client or boto3.client(
            "bedrock-runtime", region_name=region_name
        )

        self._decisions: list[AgentDecision] = []

        logger.info("Agent started: %s (model: %s)", agent_name, model_id)

    def invoke_model(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> str:
        """Calls a Nova model through the messages API and returns its text."""
        body: dict[str, Any] = {
            "messages": [{"role": "user", "content": [{"text": prompt}]}],
            "inferenceConfig": {
                "max_new_tokens": max_tokens,
                "temperature": temperature,
            },
        }
        if system:
            body["system"] = [{"text": system}]

        try:
            response = self.bedrock_runtime.invoke_model(
                modelId=self.model_id,
                contentType="application/json",
                accept="application/json",
                body=json.dumps(body),
            )
            result = json.loads(response["body"].read())
        except (ClientError, BotoCoreError) as e:
            logger.error("Bedrock API error [%s]: %s", self.agent_name, e)
            raise ExternalServiceError(str(e)) from e

        content = result.get("output", {}).get("message", {}).get("content", [{}])
        return (content[0] if content else {}).get("text", "")

    def log_decision(
        self,
        decision_type: str,
        input_data: dict,
        output_data: dict,
        reasoning: str,
    ) -> AgentDecision:
        """Records an agent decision in memory."""
        decision = AgentDecision(
            decision_id=str(uuid.uuid4()),
            agent_name=self.agent_name,
            decision_type=decision_type,
            input_data=input_data,
            output_data=output_data,
            reasoning=reasoning,
        )
        self._decisions.append(decision)
        logger.debug("Decision logged: %s %s", self.agent_name, decision_type)
        return decision

    def get_decisions(self) -> list[AgentDecision]:
        return list(self._decisions)

    @abstractmethod
    def process(self, *args: Any, **kwargs: Any) -> Any:
        """Each agent implements its own work here."""
        ...
