import unittest

from appgw.errors import SessionError
from appgw.status import StatusReporter, summarize_backend_health
from appgw.utils.config_loader import parse_deployment_config
from helpers import GATEWAY_ID, PIP_ID, RG, gateway, make_client, sample_document


def backend_health(*healths):
    return {
        "backendAddressPools": [
            {
                "backendAddressPool": {"id": f"{GATEWAY_ID}/backendAddressPools/web-pool"},
                "backendHttpSettingsCollection": [
                    {
                        "backendHttpSettings": {
                            "id": f"{GATEWAY_ID}/backendHttpSettingsCollection/web-http"
                        },
                        "servers": [
                            {"address": f"10.0.2.{i + 4}", "health": h}
                            for i, h in enumerate(healths)
                        ],
                    }
                ],
            }
        ]
    }


class StatusReporterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.config = parse_deployment_config(sample_document())
        self.client = make_client()

    def test_missing_gateway_returns_none(self) -> None:
        report = StatusReporter(self.client).get_status(self.config)
        self.assertIsNone(report)
        self.client.get_backend_health.assert_not_called()

    def test_no_session_raises(self) -> None:
        self.client.get_session.return_value = None
        with self.assertLogs("appgw", level="ERROR"):
            with self.assertRaises(SessionError):
                StatusReporter(self.client).get_status(self.config)

    def test_degraded_counts_as_unhealthy(self) -> None:
        self.client.get_application_gateway.return_value = gateway(
            "Succeeded",
            operationalState="Running",
            frontendIPConfigurations=[{"name": "fe-public", "publicIPAddress": {"id": PIP_ID}}],
        )
        self.client.get_backend_health.return_value = backend_health(
            "Healthy", "Healthy", "Degraded"
        )

        report = StatusReporter(self.client).get_status(self.config)

        self.assertEqual(report.name, "appgw-test")
        self.assertEqual(report.resource_group, RG)
        self.assertEqual(report.provisioning_state, "Succeeded")
        self.assertEqual(report.operational_state, "Running")
        self.assertEqual(report.frontend_ip_address, "20.1.2.3")
        pool = report.backend_health[0]
        self.assertEqual(pool.pool_name, "web-pool")
        self.assertEqual(pool.healthy_servers, 2)
        self.assertEqual(pool.unhealthy_servers, 1)
        self.assertEqual(pool.servers[2].health, "Degraded")
        self.assertEqual(pool.servers[0].http_setting, "web-http")
        self.client.get_public_ip_by_id.assert_called_once_with(PIP_ID)

    def test_public_ip_in_another_resource_group(self) -> None:
        shared_pip_id = PIP_ID.replace(RG, "rg-shared-network")
        self.client.get_application_gateway.return_value = gateway(
            "Succeeded",
            frontendIPConfigurations=[{"name": "fe-public", "publicIPAddress": {"id": shared_pip_id}}],
        )
        self.client.get_public_ip_by_id.return_value = {"id": shared_pip_id, "ipAddress": "20.9.9.9"}
        self.client.get_backend_health.return_value = {}

        report = StatusReporter(self.client).get_status(self.config)

        self.assertEqual(report.frontend_ip_address, "20.9.9.9")
        self.client.get_public_ip_by_id.assert_called_once_with(shared_pip_id)

    def test_private_frontend_address(self) -> None:
        self.client.get_application_gateway.return_value = gateway(
            "Succeeded",
            frontendIPConfigurations=[{"name": "fe", "privateIPAddress": "10.0.1.10"}],
        )
        self.client.get_backend_health.return_value = {}

        report = StatusReporter(self.client).get_status(self.config)

        self.assertEqual(report.frontend_ip_address, "10.0.1.10")
        self.assertEqual(report.backend_health, [])


class SummarizeTests(unittest.TestCase):
    def test_unknown_and_empty_pools(self) -> None:
        pools = summarize_backend_health(
            {
                "backendAddressPools": [
                    {"backendAddressPool": {"id": "x/backendAddressPools/empty"}},
                ]
            }
        )
        self.assertEqual(pools[0].pool_name, "empty")
        self.assertEqual(pools[0].healthy_servers, 0)
        self.assertEqual(pools[0].unhealthy_servers, 0)

    def test_only_exact_healthy_counts(self) -> None:
        pool = summarize_backend_health(backend_health("Healthy", "Unknown", "Unhealthy", "Draining"))[0]
        self.assertEqual((pool.healthy_servers, pool.unhealthy_servers), (1, 3))
