"""Unit tests for MCP tool implementations."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from diffviz.config import DiffvizConfig
from diffviz.delivery.local import LocalArtifactWriter
from diffviz.delivery.orchestrator import DeliveryOrchestrator
from diffviz.delivery.planner import Strategy
from diffviz.delivery.scheduler import DeferredTaskScheduler
from diffviz.exceptions import DeliveryFailedError, DiffvizError, ValidationError
from diffviz.mcp.schemas import FileDiffInput, ShareDiffInput
from diffviz.mcp.tools import (
    validate_file_input,
    validate_share_input,
    visualize_diff_html_content_impl,
    visualize_diff_output_file_impl,
)


@pytest.fixture
def scheduler():
    scheduler = DeferredTaskScheduler()
    yield scheduler
    scheduler.cancel_all()


def make_orchestrator(config, mock_rasterizer, mock_opener, scheduler):
    writer = LocalArtifactWriter(
        config.deployment.output_dir, rasterizer=mock_rasterizer, opener=mock_opener, scheduler=scheduler
    )
    return DeliveryOrchestrator(config, local_writer=writer, scheduler=scheduler)


def recording_orchestrator():
    orchestrator = MagicMock(spec=DeliveryOrchestrator)
    orchestrator.deliver.return_value = MagicMock(summary="delivered", channel=Strategy.LOCAL)
    return orchestrator


class TestValidateShareInput:
    """Tests for validate_share_input."""

    def test_defaults_are_valid(self, simple_diff):
        validate_share_input(ShareDiffInput(diff=simple_diff))

    @pytest.mark.parametrize("expiry", [1, 30, 1440])
    def test_expiry_in_range(self, simple_diff, expiry):
        validate_share_input(ShareDiffInput(diff=simple_diff, expiry_minutes=expiry))

    @pytest.mark.parametrize("expiry", [0, 1441, -5])
    def test_expiry_out_of_range(self, simple_diff, expiry):
        """Out-of-range lifetimes are rejected before any work is done."""
        with pytest.raises(ValidationError) as exc_info:
            validate_share_input(ShareDiffInput(diff=simple_diff, expiry_minutes=expiry))
        assert exc_info.value.parameter_name == "expiryMinutes"
        assert "1440" in str(exc_info.value)

    @pytest.mark.parametrize("expiry", [True, "30", 12.5])
    def test_expiry_must_be_integer(self, simple_diff, expiry):
        with pytest.raises(ValidationError) as exc_info:
            validate_share_input(ShareDiffInput(diff=simple_diff, expiry_minutes=expiry))
        assert exc_info.value.parameter_name == "expiryMinutes"

    @pytest.mark.parametrize("diff", ["", None, 42, ["--- a/x"]])
    def test_diff_must_be_non_empty_string(self, diff):
        with pytest.raises(ValidationError) as exc_info:
            validate_share_input(ShareDiffInput(diff=diff))
        assert exc_info.value.parameter_name == "diff"

    def test_unknown_format(self, simple_diff):
        with pytest.raises(ValidationError) as exc_info:
            validate_share_input(ShareDiffInput(diff=simple_diff, format="inline"))  # type: ignore[arg-type]
        assert exc_info.value.parameter_name == "format"

    def test_unknown_security_level(self, simple_diff):
        with pytest.raises(ValidationError) as exc_info:
            validate_share_input(ShareDiffInput(diff=simple_diff, security_level="extreme"))  # type: ignore[arg-type]
        assert exc_info.value.parameter_name == "securityLevel"


class TestValidateFileInput:
    """Tests for validate_file_input."""

    def test_defaults_are_valid(self, simple_diff):
        validate_file_input(FileDiffInput(diff=simple_diff))

    def test_unknown_output_type(self, simple_diff):
        with pytest.raises(ValidationError) as exc_info:
            validate_file_input(FileDiffInput(diff=simple_diff, output_type="pdf"))  # type: ignore[arg-type]
        assert exc_info.value.parameter_name == "outputType"

    def test_missing_diff(self):
        with pytest.raises(ValidationError):
            validate_file_input(FileDiffInput(diff=""))


class TestVisualizeDiffHtmlContentImpl:
    """Tests for visualize_diff_html_content_impl."""

    def test_request_mapping(self, simple_diff):
        """Test that tool parameters reach the delivery request."""
        orchestrator = recording_orchestrator()
        input_data = ShareDiffInput(
            diff=simple_diff,
            format="line-by-line",
            show_file_list=False,
            highlight=False,
            old_path="x.py",
            auto_open=True,
            expiry_minutes=5,
            public=True,
            security_level="high",
            compat_mode=True,
        )

        assert visualize_diff_html_content_impl(input_data, DiffvizConfig(), orchestrator) == "delivered"

        request = orchestrator.deliver.call_args.args[0]
        assert request.diff == simple_diff
        assert request.old_path == "x.py"
        assert request.render_options.layout == "line-by-line"
        assert request.render_options.show_file_list is False
        assert request.render_options.highlight is False
        assert request.auto_open is True
        assert request.expiry_minutes == 5
        assert request.visibility == "public"
        assert request.security_level == "high"
        assert request.compat_mode is True
        assert request.explicit_mode is None

    def test_private_by_default(self, simple_diff):
        orchestrator = recording_orchestrator()
        visualize_diff_html_content_impl(ShareDiffInput(diff=simple_diff), DiffvizConfig(), orchestrator)

        request = orchestrator.deliver.call_args.args[0]
        assert request.visibility is None
        assert request.expiry_minutes is None
        assert request.security_level == "medium"

    @pytest.mark.parametrize("expiry", [0, 1441])
    def test_invalid_expiry_does_not_deliver(self, simple_diff, expiry):
        orchestrator = recording_orchestrator()
        with pytest.raises(ValidationError):
            visualize_diff_html_content_impl(
                ShareDiffInput(diff=simple_diff, expiry_minutes=expiry), DiffvizConfig(), orchestrator
            )
        orchestrator.deliver.assert_not_called()

    def test_without_token_falls_back_to_local_file(
        self, simple_diff, local_config, mock_rasterizer, mock_opener, scheduler
    ):
        """Test the local fallback when no GitHub token is configured."""
        orchestrator = make_orchestrator(local_config, mock_rasterizer, mock_opener, scheduler)

        summary = visualize_diff_html_content_impl(ShareDiffInput(diff=simple_diff), local_config, orchestrator)

        output = Path(local_config.output_dir) / "diff-image.html"
        assert output.exists()
        assert f"Diff visualization saved as HTML file: {output}" in summary
        assert "Remote sharing skipped: no GitHub token is configured" in summary
        assert "Expires:" in summary

    def test_delivery_errors_propagate_unchanged(self, simple_diff):
        orchestrator = recording_orchestrator()
        failure = DeliveryFailedError([("local", OSError("disk full"))])
        orchestrator.deliver.side_effect = failure

        with pytest.raises(DeliveryFailedError) as exc_info:
            visualize_diff_html_content_impl(ShareDiffInput(diff=simple_diff), DiffvizConfig(), orchestrator)
        assert exc_info.value is failure

    def test_unexpected_errors_are_wrapped(self, simple_diff):
        orchestrator = recording_orchestrator()
        orchestrator.deliver.side_effect = RuntimeError("kaboom")

        with pytest.raises(DiffvizError) as exc_info:
            visualize_diff_html_content_impl(ShareDiffInput(diff=simple_diff), DiffvizConfig(), orchestrator)
        assert isinstance(exc_info.value.original_error, RuntimeError)
        assert "kaboom" in str(exc_info.value)


class TestVisualizeDiffOutputFileImpl:
    """Tests for visualize_diff_output_file_impl."""

    def test_writes_html_file(self, modified_diff, local_config, mock_rasterizer, mock_opener, scheduler):
        orchestrator = make_orchestrator(local_config, mock_rasterizer, mock_opener, scheduler)

        summary = visualize_diff_output_file_impl(FileDiffInput(diff=modified_diff), local_config, orchestrator)

        output = Path(local_config.output_dir) / "diff-image.html"
        assert f"Diff visualization saved as HTML file: {output}" in summary
        assert "Expires:" not in summary
        assert "Remote sharing" not in summary
        html = output.read_text(encoding="utf-8")
        assert "src/app.py" in html
        mock_opener.open.assert_not_called()
        assert scheduler.pending_tasks == []

    def test_writes_image(self, simple_diff, local_config, mock_rasterizer, mock_opener, scheduler):
        orchestrator = make_orchestrator(local_config, mock_rasterizer, mock_opener, scheduler)

        summary = visualize_diff_output_file_impl(
            FileDiffInput(diff=simple_diff, output_type="image"), local_config, orchestrator
        )

        output = Path(local_config.output_dir) / "diff-image.png"
        assert f"Diff visualization saved as image: {output}" in summary
        assert output.read_bytes().startswith(b"\x89PNG")
        rendered_html = mock_rasterizer.render_png.call_args.args[0]
        assert "table-layout: fixed" in rendered_html

    def test_defaults_come_from_config(self, simple_diff, local_config, mock_rasterizer, mock_opener, scheduler):
        config = local_config.create_updated(default_auto_open=True, default_output_mode="image")
        orchestrator = make_orchestrator(config, mock_rasterizer, mock_opener, scheduler)

        summary = visualize_diff_output_file_impl(FileDiffInput(diff=simple_diff), config, orchestrator)

        assert "saved as image" in summary
        mock_opener.open.assert_called_once_with(Path(config.output_dir) / "diff-image.png")
        assert "Note: Opened in the default viewer" in summary

    def test_explicit_values_override_config(self, simple_diff):
        orchestrator = recording_orchestrator()
        config = DiffvizConfig(default_auto_open=True, default_output_mode="image")

        visualize_diff_output_file_impl(
            FileDiffInput(diff=simple_diff, auto_open=False, output_type="html"), config, orchestrator
        )

        request = orchestrator.deliver.call_args.args[0]
        assert request.auto_open is False
        assert request.output_kind == "html"
        assert request.explicit_mode == "local"

    def test_hosted_deployment_returns_inline_data(self, simple_diff, tmp_path, mock_rasterizer, mock_opener, scheduler):
        config = DiffvizConfig(is_hosted=True, output_dir=str(tmp_path / "hosted"))
        orchestrator = make_orchestrator(config, mock_rasterizer, mock_opener, scheduler)

        summary = visualize_diff_output_file_impl(FileDiffInput(diff=simple_diff, auto_open=True), config, orchestrator)

        assert "Diff visualization delivered inline" in summary
        assert "Data URI: data:text/html;charset=utf-8;base64," in summary
        assert "Auto-open is disabled in hosted deployments" in summary
        assert not (tmp_path / "hosted").exists()
        mock_opener.open.assert_not_called()

    def test_invalid_output_type(self, simple_diff):
        orchestrator = recording_orchestrator()
        with pytest.raises(ValidationError):
            visualize_diff_output_file_impl(
                FileDiffInput(diff=simple_diff, output_type="gif"), DiffvizConfig(), orchestrator  # type: ignore[arg-type]
            )
        orchestrator.deliver.assert_not_called()
