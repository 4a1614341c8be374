import unittest

from appgw.errors import PreconditionMissing, ResourceQueryError, SessionError
from appgw.utils.azcli import CmdError
from appgw.utils.validation import (
    PrerequisiteValidator,
    ResourceKind,
    format_missing_keys_message,
)
from helpers import RG, SUBSCRIPTION_ID, make_client


class SessionTests(unittest.TestCase):
    def test_no_session(self) -> None:
        client = make_client()
        client.get_session.return_value = None
        with self.assertLogs("appgw", level="ERROR"):
            with self.assertRaises(SessionError) as ctx:
                PrerequisiteValidator(client).require_session()
        self.assertEqual(ctx.exception.code, "CONN-001A")

    def test_session_returns_subscription(self) -> None:
        self.assertEqual(PrerequisiteValidator(make_client()).require_session(), SUBSCRIPTION_ID)


class ResourceCheckTests(unittest.TestCase):
    def test_missing_resource_group(self) -> None:
        client = make_client()
        client.get_resource_group.return_value = None
        with self.assertLogs("appgw", level="INFO") as logs:
            with self.assertRaises(PreconditionMissing) as ctx:
                PrerequisiteValidator(client).require(ResourceKind.RESOURCE_GROUP, RG)
        self.assertEqual(ctx.exception.code, "RG-002A")
        self.assertEqual(len(logs.records), 1)
        self.assertIn("[RG-002A]", logs.output[0])

    def test_query_failure_is_coded(self) -> None:
        client = make_client()
        client.get_public_ip.side_effect = CmdError("throttled", stderr="TooManyRequests")
        with self.assertLogs("appgw", level="ERROR"):
            with self.assertRaises(ResourceQueryError) as ctx:
                PrerequisiteValidator(client).require(ResourceKind.PUBLIC_IP, "pip-test", RG)
        self.assertEqual(ctx.exception.code, "PIP-001A")

    def test_existing_resource_logs_one_line(self) -> None:
        with self.assertLogs("appgw", level="INFO") as logs:
            found = PrerequisiteValidator(make_client()).require(
                ResourceKind.PUBLIC_IP, "pip-test", RG
            )
        self.assertEqual(found["name"], "pip-test")
        self.assertEqual(len(logs.records), 1)

    def test_resource_exists_is_boolean(self) -> None:
        client = make_client()
        validator = PrerequisiteValidator(client)
        self.assertFalse(
            validator.resource_exists(ResourceKind.APPLICATION_GATEWAY, "appgw-test", RG)
        )
        client.get_application_gateway.return_value = {"name": "appgw-test"}
        self.assertTrue(
            validator.resource_exists(ResourceKind.APPLICATION_GATEWAY, "appgw-test", RG)
        )


class NetworkTests(unittest.TestCase):
    def test_subnet_found_in_vnet(self) -> None:
        client = make_client()
        vnet, subnet = PrerequisiteValidator(client).require_network(RG, "vnet-test", "snet-appgw")
        self.assertEqual(vnet["name"], "vnet-test")
        self.assertEqual(subnet["name"], "snet-appgw")
        client.get_network_security_group.assert_called_once()

    def test_missing_subnet_names_subnet_and_vnet(self) -> None:
        client = make_client()
        with self.assertLogs("appgw", level="ERROR"):
            with self.assertRaises(PreconditionMissing) as ctx:
                PrerequisiteValidator(client).require_network(RG, "vnet-test", "snet-missing")
        self.assertEqual(ctx.exception.code, "VNET-003A")
        self.assertIn("snet-missing", str(ctx.exception))
        self.assertIn("vnet-test", str(ctx.exception))

    def test_missing_vnet(self) -> None:
        client = make_client()
        client.get_virtual_network.return_value = None
        with self.assertLogs("appgw", level="ERROR"):
            with self.assertRaises(PreconditionMissing) as ctx:
                PrerequisiteValidator(client).require_network(RG, "vnet-test", "snet-appgw")
        self.assertEqual(ctx.exception.code, "VNET-002A")

    def test_subnet_without_nsg_is_a_warning(self) -> None:
        client = make_client()
        client.get_virtual_network.return_value = {
            "name": "vnet-test",
            "subnets": [{"name": "snet-appgw", "id": "subnet-id"}],
        }
        with self.assertLogs("appgw", level="WARNING") as logs:
            PrerequisiteValidator(client).require_network(RG, "vnet-test", "snet-appgw")
        self.assertIn("no network security group", logs.output[0])
        client.get_network_security_group.assert_not_called()


class MessageTests(unittest.TestCase):
    def test_format_missing_keys(self) -> None:
        self.assertEqual(format_missing_keys_message([], "x.json"), "")
        message = format_missing_keys_message(["PublicIP"], "config/prod.json")
        self.assertIn("config/prod.json", message)
        self.assertIn("  - PublicIP", message)
