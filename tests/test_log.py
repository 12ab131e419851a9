"""Tests for logging setup and resource snapshots"""

import json

import structlog

from provisioning.log import bind_run, print_resource, setup_logging, snapshot
from provisioning.models import Certificate, DnsRecordType, HostNameBinding, SslState


def _json_lines(output):
    return [json.loads(line) for line in output.strip().splitlines() if line.strip()]


class TestSetupLogging:
    def test_json_format(self, capsys):
        setup_logging(log_format="json", log_level="info")

        structlog.get_logger("test").info("hello", key="value")

        [entry] = [e for e in _json_lines(capsys.readouterr().out) if e["event"] == "hello"]
        assert entry["key"] == "value"
        assert entry["level"] == "info"
        assert "timestamp" in entry

    def test_level_filters(self, capsys):
        setup_logging(log_format="json", log_level="warning")

        structlog.get_logger("test").info("quiet")

        assert "quiet" not in capsys.readouterr().out

    def test_run_context_bound(self, capsys):
        setup_logging(log_format="json", subscription_id="33333333-3333-3333-3333-333333333333")
        bind_run("rgNEMV_12345")

        structlog.get_logger("test").info("step")

        [entry] = [e for e in _json_lines(capsys.readouterr().out) if e["event"] == "step"]
        assert entry["subscription_id"] == "33333333-3333-3333-3333-333333333333"
        assert entry["run"] == "rgNEMV_12345"

    def test_setup_drops_previous_run(self, capsys):
        setup_logging(log_format="json")
        bind_run("rgOLD_1")
        setup_logging(log_format="json")

        structlog.get_logger("test").info("step")

        [entry] = [e for e in _json_lines(capsys.readouterr().out) if e["event"] == "step"]
        assert "run" not in entry

    def test_secrets_masked(self, capsys):
        setup_logging(log_format="json")

        structlog.get_logger("test").info("created", password="S3cret!pass", name="app")

        out = capsys.readouterr().out
        [entry] = [e for e in _json_lines(out) if e["event"] == "created"]
        assert entry["password"] == "***"
        assert entry["name"] == "app"
        assert "S3cret!pass" not in out


class TestSnapshot:
    def test_enums_flattened(self):
        binding = HostNameBinding(
            id="b",
            name="app.example.com",
            app_name="app",
            domain_id="d",
            dns_record_type=DnsRecordType.CNAME,
            ssl_state=SslState.SNI_ENABLED,
        )
        values = snapshot(binding)
        assert values["dns_record_type"] == "CName"
        assert values["ssl_state"] == "SniEnabled"

    def test_hidden_fields_skipped(self):
        cert = Certificate(path="c.pfx", password="pw", domain_name="example.com", thumbprint="AB")
        assert "password" not in snapshot(cert)

    def test_non_dataclass(self):
        assert snapshot("x") == {"value": "'x'"}

    def test_print_resource(self, capsys):
        setup_logging(log_format="json")

        print_resource(structlog.get_logger("test"), Certificate("c.pfx", "pw", "example.com", "AB"))

        [entry] = [e for e in _json_lines(capsys.readouterr().out) if e["event"] == "resource"]
        assert entry["kind"] == "Certificate"
        assert entry["thumbprint"] == "AB"
        assert "password" not in entry
