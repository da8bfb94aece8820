"""Bedrock 모델 레지스트리 테스트"""

from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError, NoCredentialsError

from intent_router.core.errors import ModelInvocationError
from intent_router.services.llm.model_registry import BedrockModelRegistry, summarize_model

SONNET = {
    "modelArn": "arn:aws:bedrock:us-east-1::foundation-model/anthropic.claude-3-5-sonnet-20241022-v2:0",
    "modelId": "anthropic.claude-3-5-sonnet-20241022-v2:0",
    "modelName": "Claude 3.5 Sonnet v2",
    "providerName": "Anthropic",
    "inputModalities": ["TEXT", "IMAGE"],
    "outputModalities": ["TEXT"],
    "responseStreamingSupported": True,
    "customizationsSupported": [],
    "inferenceTypesSupported": ["INFERENCE_PROFILE"],
}
MISTRAL = {
    "modelId": "mistral.mistral-large-2407",
    "providerName": "Mistral AI",
    "inputModalities": ["TEXT"],
    "outputModalities": ["TEXT"],
    "responseStreamingSupported": True,
}


@pytest.fixture
def bedrock_client():
    client = Mock()
    client.list_foundation_models.return_value = {"modelSummaries": [SONNET, MISTRAL]}
    return client


class TestBedrockModelRegistry:
    """BedrockModelRegistry 테스트 (Mock 클라이언트)"""

    def test_summarize_model_keeps_listed_fields(self):
        summary = summarize_model(SONNET)

        assert summary["modelId"] == SONNET["modelId"]
        assert summary["providerName"] == "Anthropic"
        assert summary["responseStreamingSupported"] is True
        assert "modelArn" not in summary
        assert summary["inferenceTypes"] == ["INFERENCE_PROFILE"]
        assert summarize_model(MISTRAL)["inferenceTypes"] is None

    def test_list_available_models(self, bedrock_client):
        registry = BedrockModelRegistry(region="eu-central-1", client=bedrock_client)

        listing = registry.list_available_models()

        assert listing["region"] == "eu-central-1"
        assert listing["count"] == 2
        assert [m["modelId"] for m in listing["models"]] == [SONNET["modelId"], MISTRAL["modelId"]]

    def test_empty_listing(self, bedrock_client):
        bedrock_client.list_foundation_models.return_value = {}
        registry = BedrockModelRegistry(client=bedrock_client)

        assert registry.list_available_models() == {"region": "us-east-1", "count": 0, "models": []}

    def test_find_model(self, bedrock_client):
        registry = BedrockModelRegistry(client=bedrock_client)

        result = registry.find_model("mistral.mistral-large-2407")

        assert result["found"] is True
        assert result["model"]["providerName"] == "Mistral AI"

    def test_find_missing_model(self, bedrock_client):
        registry = BedrockModelRegistry(client=bedrock_client)

        assert registry.find_model("nope") == {"found": False, "model": None, "region": "us-east-1"}

    def test_access_denied_carries_code(self, bedrock_client):
        bedrock_client.list_foundation_models.side_effect = ClientError(
            {"Error": {"Code": "AccessDeniedException", "Message": "denied"}}, "ListFoundationModels"
        )
        registry = BedrockModelRegistry(client=bedrock_client)

        with pytest.raises(ModelInvocationError) as exc_info:
            registry.list_available_models()

        assert exc_info.value.code == "AccessDeniedException"

    def test_missing_credentials(self, bedrock_client):
        bedrock_client.list_foundation_models.side_effect = NoCredentialsError()
        registry = BedrockModelRegistry(client=bedrock_client)

        with pytest.raises(ModelInvocationError) as exc_info:
            registry.list_available_models()

        assert exc_info.value.code == "NoCredentialsError"
