"""Tests for the run entrypoint"""

from fakes import FakeCertificates, FakeProviderClient
from test_config import VALID

from provisioning import runner


class TestRun:
    def test_missing_credentials_make_no_provider_calls(self):
        built = []

        code = runner.run({}, client_factory=built.append)

        assert code == runner.EXIT_CONFIG
        assert built == []

    def test_happy_path(self):
        client = FakeProviderClient()
        seen = []

        def factory(settings):
            seen.append(settings)
            return client

        code = runner.run(VALID, client_factory=factory, generate_certificate=FakeCertificates())

        assert code == runner.EXIT_OK
        assert seen[0].subscription_id == VALID["SUBSCRIPTION_ID"]
        assert client.ops().count("delete_resource_group") == 1
        [group_call] = client.calls_to("create_or_update_resource_group")
        assert group_call["region"] == "eastus"

    def test_provisioning_failure(self):
        client = FakeProviderClient(fail_on="purchase_domain")

        code = runner.run(
            VALID,
            client_factory=lambda settings: client,
            generate_certificate=FakeCertificates(),
        )

        assert code == runner.EXIT_PROVISIONING
        assert client.ops()[-1] == "delete_resource_group"

    def test_azure_client_from_settings(self):
        from config import Settings

        client = runner.azure_client(Settings.from_environ(VALID))

        assert client.subscription_id == VALID["SUBSCRIPTION_ID"]

    def test_unexpected_error_still_cleans_up(self):
        client = FakeProviderClient(
            fail_on="create_or_update_host_name_binding",
            fail_with=FileNotFoundError(2, "No such file or directory", "wildcard.pfx"),
        )

        code = runner.run(
            VALID,
            client_factory=lambda settings: client,
            generate_certificate=FakeCertificates(),
        )

        assert code == runner.EXIT_PROVISIONING
        assert client.ops()[-1] == "delete_resource_group"

    def test_client_factory_error(self):
        def factory(settings):
            raise FileNotFoundError(2, "No such file or directory", "pulumi")

        code = runner.run(VALID, client_factory=factory, generate_certificate=FakeCertificates())

        assert code == runner.EXIT_PROVISIONING
