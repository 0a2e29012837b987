"""Unit tests for the gist client, driven through httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from diffviz.delivery.remote import GistClient, ShareMetadata
from diffviz.delivery.security import PolicyOverrides, resolve_policy
from diffviz.exceptions import DiffvizError, NetworkSecurityError, RemoteShareError, ValidationError
from diffviz.utils.http import create_api_client

API = "https://api.github.com"


class RecordingScheduler:
    """Scheduler double that records tasks instead of starting timers."""

    def __init__(self):
        self.scheduled = []

    def schedule(self, name, delay_seconds, action, *args):
        task = _RecordedTask(name, delay_seconds, action, args)
        self.scheduled.append(task)
        return task


class _RecordedTask:
    def __init__(self, name, delay_seconds, action, args):
        self.name = name
        self.delay_seconds = delay_seconds
        self.action = action
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True
        return True

    def run(self):
        self.action(*self.args)


def make_client(handler, scheduler=None):
    http_client = create_api_client(API, transport=httpx.MockTransport(handler))
    return GistClient("ghp_test", scheduler=scheduler or RecordingScheduler(), http_client=http_client)


def gist_created(request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content)
    filename = next(iter(body["files"]))
    return httpx.Response(
        201,
        json={
            "id": "abc123",
            "html_url": "https://gist.github.com/octocat/abc123",
            "owner": {"login": "octocat"},
            "files": {filename: {"raw_url": f"https://gist.githubusercontent.com/raw/{filename}"}},
        },
    )


@pytest.mark.unit
class TestGistClientPublish:
    """Tests for GistClient.publish."""

    def test_publish_builds_urls_and_schedules_revoke(self):
        requests = []

        def handler(request):
            requests.append(request)
            return gist_created(request)

        scheduler = RecordingScheduler()
        client = make_client(handler, scheduler)
        artifact = client.publish("<html></html>", resolve_policy("medium"), ShareMetadata("a.py", "b.py"))

        assert len(requests) == 1
        request = requests[0]
        assert request.method == "POST"
        assert request.url == httpx.URL(f"{API}/gists")
        assert request.headers["Authorization"] == "Bearer ghp_test"
        assert request.headers["Accept"] == "application/vnd.github+json"

        body = json.loads(request.content)
        assert body["public"] is False
        assert body["description"] == "Medium Security - Secret Gist (30min auto-delete) (a.py → b.py)"
        (filename,) = body["files"]
        assert filename.startswith("diff-") and filename.endswith(".html")
        assert body["files"][filename]["content"] == "<html></html>"

        assert artifact.artifact_id == "abc123"
        assert artifact.raw_url == f"https://gist.githubusercontent.com/octocat/abc123/raw/{filename}"
        assert artifact.primary_url == f"https://htmlpreview.github.io/?{artifact.raw_url}"
        assert artifact.alternate_url == f"https://gist.githack.com/octocat/abc123/raw/{filename}"
        assert artifact.management_url == "https://gist.github.com/octocat/abc123"
        assert (artifact.expires_at - artifact.created_at).total_seconds() == 30 * 60

        (task,) = scheduler.scheduled
        assert task.delay_seconds == 30 * 60
        assert task.args == ("abc123",)
        assert client.revoke_tasks["abc123"] is task

    def test_public_policy(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return gist_created(request)

        policy = resolve_policy("low", PolicyOverrides(visibility="public"))
        make_client(handler).publish("<html/>", policy, ShareMetadata("x", "x"))

        assert bodies[0]["public"] is True
        assert "Public Gist" in bodies[0]["description"]

    def test_raw_url_from_files_without_owner(self):
        def handler(request):
            filename = next(iter(json.loads(request.content)["files"]))
            return httpx.Response(
                201, json={"id": "anon", "files": {filename: {"raw_url": "https://gist.githubusercontent.com/r"}}}
            )

        artifact = make_client(handler).publish("<html/>", resolve_policy("low"), ShareMetadata("x", "x"))
        assert artifact.raw_url == "https://gist.githubusercontent.com/r"
        assert artifact.alternate_url is None

    def test_error_status_carries_server_message(self):
        def handler(request):
            return httpx.Response(401, json={"message": "Bad credentials"})

        with pytest.raises(RemoteShareError) as exc_info:
            make_client(handler).publish("<html/>", resolve_policy("low"), ShareMetadata("x", "x"))

        error = exc_info.value
        assert error.status_code == 401
        assert error.server_message == "Bad credentials"
        assert "GitHub API error: 401 Unauthorized: Bad credentials" in str(error)

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        scheduler = RecordingScheduler()
        with pytest.raises(RemoteShareError) as exc_info:
            make_client(handler, scheduler).publish("<html/>", resolve_policy("low"), ShareMetadata("x", "x"))

        assert isinstance(exc_info.value.original_error, httpx.ConnectError)
        assert scheduler.scheduled == []

    def test_unexpected_payload(self):
        def handler(request):
            return httpx.Response(201, json={"unexpected": True})

        with pytest.raises(RemoteShareError, match="unexpected gist payload"):
            make_client(handler).publish("<html/>", resolve_policy("low"), ShareMetadata("x", "x"))

    @pytest.mark.parametrize("payload", [["abc123"], "abc123", {"id": None}])
    def test_payload_that_is_not_a_gist_object(self, payload):
        def handler(request):
            return httpx.Response(201, json=payload)

        scheduler = RecordingScheduler()
        with pytest.raises(RemoteShareError, match="unexpected gist payload"):
            make_client(handler, scheduler).publish("<html/>", resolve_policy("low"), ShareMetadata("x", "x"))
        assert scheduler.scheduled == []

    def test_malformed_owner_uses_files_raw_url(self):
        def handler(request):
            filename = next(iter(json.loads(request.content)["files"]))
            return httpx.Response(
                201,
                json={"id": "g1", "owner": "dev", "files": {filename: {"raw_url": "https://gist.githubusercontent.com/r"}}},
            )

        artifact = make_client(handler).publish("<html/>", resolve_policy("low"), ShareMetadata("x", "x"))
        assert artifact.raw_url == "https://gist.githubusercontent.com/r"

    @pytest.mark.parametrize(
        "payload",
        [
            {"id": "g1", "owner": "dev"},
            {"id": "g1", "owner": {"login": ""}, "files": {}},
            {"id": "g1", "files": {"other.html": {"raw_url": "https://gist.githubusercontent.com/r"}}},
            {"id": "g1", "files": ["diff.html"]},
        ],
    )
    def test_missing_raw_url_fails_but_still_schedules_deletion(self, payload):
        def handler(request):
            return httpx.Response(201, json=payload)

        scheduler = RecordingScheduler()
        client = make_client(handler, scheduler)
        with pytest.raises(RemoteShareError, match="no raw URL"):
            client.publish("<html/>", resolve_policy("high"), ShareMetadata("x", "x"))

        (task,) = scheduler.scheduled
        assert task.args == ("g1",)
        assert task.delay_seconds == 15 * 60
        assert client.revoke_tasks["g1"] is task

    def test_redirect_off_host_is_refused(self):
        def handler(request):
            return httpx.Response(307, headers={"Location": "https://evil.example.com/gists"})

        with pytest.raises(NetworkSecurityError):
            make_client(handler).publish("<html/>", resolve_policy("low"), ShareMetadata("x", "x"))

    @pytest.mark.parametrize("token", ["", "   "])
    def test_blank_token_rejected(self, token):
        with pytest.raises(ValidationError) as exc_info:
            GistClient(token, scheduler=RecordingScheduler())
        assert exc_info.value.parameter_name == "token"


@pytest.mark.unit
class TestGistClientRevoke:
    """Tests for GistClient.revoke and expiry-driven deletion."""

    def test_revoke_deletes_and_cancels_pending_task(self):
        deleted = []

        def handler(request):
            if request.method == "DELETE":
                deleted.append(request.url.path)
                return httpx.Response(204)
            return gist_created(request)

        scheduler = RecordingScheduler()
        client = make_client(handler, scheduler)
        client.publish("<html/>", resolve_policy("high"), ShareMetadata("x", "x"))

        client.revoke("abc123")

        assert deleted == ["/gists/abc123"]
        assert scheduler.scheduled[0].cancelled is True
        assert "abc123" not in client.revoke_tasks

    def test_revoke_missing_gist_is_not_an_error(self):
        client = make_client(lambda request: httpx.Response(404, json={"message": "Not Found"}))
        client.revoke("gone")

    def test_revoke_error_status(self):
        client = make_client(lambda request: httpx.Response(500, text="server exploded"))
        with pytest.raises(RemoteShareError) as exc_info:
            client.revoke("abc123")
        assert exc_info.value.status_code == 500
        assert exc_info.value.server_message == "server exploded"

    def test_expiry_revoke_runs_deletion(self):
        deleted = []

        def handler(request):
            if request.method == "DELETE":
                deleted.append(request.url.path)
                return httpx.Response(204)
            return gist_created(request)

        scheduler = RecordingScheduler()
        client = make_client(handler, scheduler)
        client.publish("<html/>", resolve_policy("low"), ShareMetadata("x", "x"))

        scheduler.scheduled[0].run()

        assert deleted == ["/gists/abc123"]
        assert client.revoke_tasks == {}

    def test_expiry_revoke_failure_is_logged(self, caplog):
        def handler(request):
            if request.method == "DELETE":
                return httpx.Response(403, json={"message": "Forbidden"})
            return gist_created(request)

        scheduler = RecordingScheduler()
        client = make_client(handler, scheduler)
        client.publish("<html/>", resolve_policy("low"), ShareMetadata("x", "x"))

        with caplog.at_level("WARNING", logger="diffviz.delivery.remote"):
            scheduler.scheduled[0].run()

        assert "Failed to delete expired gist abc123" in caplog.text

    def test_errors_share_base_class(self):
        assert issubclass(RemoteShareError, DiffvizError)
        assert issubclass(NetworkSecurityError, DiffvizError)
