"""Tests for Temporal activities and registries."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from temporalio.exceptions import ApplicationError
from temporalio.testing import ActivityEnvironment

from lextrust.core.exceptions import ConfigurationError
from lextrust.schemas.ingestion import IngestionSummary
from lextrust.temporal.activities.ingestion import resolve_ingestion_adapters, run_ingestion_adapter
from lextrust.temporal.core.activity_registry import ActivityRegistry
from lextrust.temporal.core.discovery import discover_all
from lextrust.temporal.core.workflow_registry import WorkflowRegistry


def _session_maker() -> MagicMock:
    session = MagicMock()
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


class TestIngestionActivities:
    """Tests for the ingestion activities."""

    @pytest.mark.asyncio
    async def test_resolve_all_adapters(self):
        """Test that no selection resolves to every registered adapter."""
        adapter_ids = await ActivityEnvironment().run(resolve_ingestion_adapters, None)

        assert "fr-legifrance-core" in adapter_ids
        assert adapter_ids[0] == "ohada-uniform-acts"

    @pytest.mark.asyncio
    async def test_resolve_unknown_adapter(self):
        """Test that unknown adapters fail without retries."""
        with pytest.raises(ApplicationError) as exc_info:
            await ActivityEnvironment().run(resolve_ingestion_adapters, ["fr-legifrance-core", "nope"])

        assert exc_info.value.non_retryable is True
        assert "nope" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_run_adapter_returns_summary(self, org_id):
        """Test that the orchestrator summary is returned as a dict."""
        orchestrator = MagicMock(run_adapter=AsyncMock(return_value=IngestionSummary(inserted=2, skipped=1)))
        with patch(
            "lextrust.temporal.activities.ingestion.get_session_maker", return_value=_session_maker()
        ), patch("lextrust.temporal.activities.ingestion.IngestionOrchestrator", return_value=orchestrator):
            summary = await ActivityEnvironment().run(run_ingestion_adapter, str(org_id), "be-justel-core")

        assert summary == {"inserted": 2, "skipped": 1, "failures": 0}

    @pytest.mark.asyncio
    async def test_configuration_error_is_non_retryable(self, org_id):
        """Test that missing credentials stop the workflow instead of retrying."""
        with patch(
            "lextrust.temporal.activities.ingestion.get_session_maker", return_value=_session_maker()
        ), patch(
            "lextrust.temporal.activities.ingestion.IngestionOrchestrator",
            side_effect=ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be configured"),
        ):
            with pytest.raises(ApplicationError) as exc_info:
                await ActivityEnvironment().run(run_ingestion_adapter, str(org_id), "be-justel-core")

        assert exc_info.value.non_retryable is True


class TestRegistries:
    """Tests for component discovery."""

    def test_discovery_registers_workflows_and_activities(self):
        """Test that discovery finds both workflows and every activity."""
        discover_all()

        assert {"CrawlAuthoritiesWorkflow", "LearningLoopWorkflow"} <= set(WorkflowRegistry.get_all_workflows())
        assert {
            "ingestion:resolve_ingestion_adapters",
            "ingestion:run_ingestion_adapter",
            "learning:run_learning_loop",
        } <= set(ActivityRegistry.get_all_activities())
