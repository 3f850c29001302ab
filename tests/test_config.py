"""
Tests for configuration loading and merchant credentials.
"""
from __future__ import annotations

import pytest

from newebpay.core.config import (
    Deployment,
    Endpoints,
    GatewayConfig,
    GatewayParameters,
    load_gateway_config,
)
from newebpay.core.credentials import MerchantCredentials
from newebpay.core.environment import build_environment, load_env_file
from newebpay.core.errors import ConfigError, InvalidKeyMaterial

from conftest import HASH_IV, HASH_KEY, MERCHANT_ID

CREDENTIALS = {
    "NEWEBPAY_MERCHANT_ID": MERCHANT_ID,
    "NEWEBPAY_HASH_KEY": HASH_KEY,
    "NEWEBPAY_HASH_IV": HASH_IV,
}


class TestMerchantCredentials:
    def test_secrets_are_hidden_from_repr(self, merchant):
        text = repr(merchant)
        assert MERCHANT_ID in text
        assert HASH_KEY not in text
        assert HASH_IV not in text

    @pytest.mark.parametrize("merchant_id", ["", "   "])
    def test_empty_merchant_id(self, merchant_id):
        with pytest.raises(ConfigError):
            MerchantCredentials(merchant_id=merchant_id, hash_key=HASH_KEY, hash_iv=HASH_IV)

    def test_bad_key_length(self):
        with pytest.raises(InvalidKeyMaterial):
            MerchantCredentials(merchant_id=MERCHANT_ID, hash_key="short", hash_iv=HASH_IV)

    def test_invalid_key_material_is_a_config_error(self):
        with pytest.raises(ConfigError):
            MerchantCredentials(merchant_id=MERCHANT_ID, hash_key=HASH_KEY, hash_iv="short")


class TestDeployment:
    @pytest.mark.parametrize("value", ["production", "PRODUCTION", " Production "])
    def test_production(self, value):
        assert Deployment.parse(value) is Deployment.PRODUCTION

    @pytest.mark.parametrize("value", [None, "", "sandbox", "test", "prod"])
    def test_everything_else_is_sandbox(self, value):
        assert Deployment.parse(value) is Deployment.SANDBOX

    def test_endpoints(self):
        production = Endpoints.for_deployment(Deployment.PRODUCTION)
        sandbox = Endpoints.for_deployment(Deployment.SANDBOX)
        assert production.close == "https://core.newebpay.com/API/CreditCard/Close"
        assert sandbox.query == "https://ccore.newebpay.com/API/QueryTradeInfo"
        assert sandbox.mpg == "https://ccore.newebpay.com/MPG/mpg_gateway"

    def test_custom_root(self):
        endpoints = Endpoints.for_root("http://localhost:8080/")
        assert endpoints.cancel == "http://localhost:8080/API/CreditCard/Cancel"
        assert endpoints.credit_card == "http://localhost:8080/API/CreditCard"


class TestGatewayConfig:
    def test_defaults(self):
        config = GatewayConfig.from_mapping({})
        assert config.deployment is Deployment.SANDBOX
        assert config.timeout_seconds == 30.0
        assert config.merchant is None
        with pytest.raises(ConfigError):
            config.require_merchant()

    def test_full_mapping(self):
        config = GatewayConfig.from_mapping(
            dict(CREDENTIALS, NEWEBPAY_ENV="production", NEWEBPAY_TIMEOUT_SECONDS="12.5")
        )
        assert config.deployment is Deployment.PRODUCTION
        assert config.timeout_seconds == 12.5
        assert config.require_merchant().merchant_id == MERCHANT_ID
        assert config.endpoints.credit_card == "https://core.newebpay.com/API/CreditCard"

    def test_base_url_overrides_deployment(self):
        config = GatewayConfig.from_mapping(
            {"NEWEBPAY_ENV": "production", "NEWEBPAY_BASE_URL": "http://stub"}
        )
        assert config.endpoints.query == "http://stub/API/QueryTradeInfo"

    def test_partial_credentials(self):
        with pytest.raises(ConfigError):
            GatewayConfig.from_mapping({"NEWEBPAY_MERCHANT_ID": MERCHANT_ID})

    @pytest.mark.parametrize("raw", ["abc", "0", "-1", "nan", "inf"])
    def test_bad_timeout(self, raw):
        with pytest.raises(ConfigError):
            GatewayConfig.from_mapping({"NEWEBPAY_TIMEOUT_SECONDS": raw})

    def test_for_deployment_accepts_strings(self):
        config = GatewayConfig.for_deployment("production")
        assert config.deployment is Deployment.PRODUCTION


class TestEnvironmentLayers:
    def test_env_file_fills_missing_keys(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# gateway\n"
            "export NEWEBPAY_ENV=production\n"
            f"NEWEBPAY_HASH_KEY='{HASH_KEY}'\n"
            'NEWEBPAY_MERCHANT_ID="FROM_FILE"\n'
            "not a pair\n",
            encoding="utf-8",
        )
        env = build_environment(
            env_file=str(env_file), base={"NEWEBPAY_MERCHANT_ID": "FROM_BASE"}
        )
        assert env.get("NEWEBPAY_ENV") == "production"
        assert env.get("NEWEBPAY_HASH_KEY") == HASH_KEY
        assert env.get("NEWEBPAY_MERCHANT_ID") == "FROM_BASE"

    def test_overrides_win(self, tmp_path):
        env = build_environment(
            env_file=str(tmp_path / "missing.env"),
            base={"NEWEBPAY_ENV": "sandbox"},
            overrides={"NEWEBPAY_ENV": "production"},
        )
        assert env.get("NEWEBPAY_ENV") == "production"

    def test_load_env_file_keeps_existing(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("A=file\nB=file\n", encoding="utf-8")
        environ = {"A": "process"}
        merged = load_env_file(str(env_file), environ=environ)
        assert merged == {"A": "process", "B": "file"}
        assert environ["B"] == "file"

    def test_keyword_arguments(self):
        config = load_gateway_config(
            env_file=None,
            base={},
            merchant_id=MERCHANT_ID,
            hash_key=HASH_KEY,
            hash_iv=HASH_IV,
            timeout_seconds=7,
            environment="production",
        )
        assert config.timeout_seconds == 7.0
        assert config.deployment is Deployment.PRODUCTION
        assert config.merchant.merchant_id == MERCHANT_ID

    def test_parameters_bundle(self):
        parameters = GatewayParameters(base_url="http://stub", timeout_seconds="3")
        assert parameters.as_overrides() == {
            "NEWEBPAY_TIMEOUT_SECONDS": "3",
            "NEWEBPAY_BASE_URL": "http://stub",
        }
        config = load_gateway_config(env_file=None, base=CREDENTIALS, parameters=parameters)
        assert config.endpoints.close == "http://stub/API/CreditCard/Close"
        assert config.timeout_seconds == 3.0

    def test_keyword_beats_overrides(self):
        config = load_gateway_config(
            env_file=None,
            base=CREDENTIALS,
            overrides={"NEWEBPAY_ENV": "production"},
            environment="sandbox",
        )
        assert config.deployment is Deployment.SANDBOX

    def test_origins_are_tracked(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("NEWEBPAY_ENV=production # live host\nNEWEBPAY_BASE_URL=x\n", encoding="utf-8")
        env = build_environment(
            env_file=str(env_file),
            base={"NEWEBPAY_BASE_URL": "http://stub"},
            overrides={"NEWEBPAY_TIMEOUT_SECONDS": "9"},
        )
        assert env.get("NEWEBPAY_ENV") == "production"
        assert env.origin("NEWEBPAY_ENV") == "env-file"
        assert env.origin("NEWEBPAY_BASE_URL") == "environment"
        assert env.origin("NEWEBPAY_TIMEOUT_SECONDS") == "override"
        assert env.origin("NEWEBPAY_HASH_IV") is None

    def test_error_names_the_source(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("NEWEBPAY_TIMEOUT_SECONDS=soon\n", encoding="utf-8")
        with pytest.raises(ConfigError) as excinfo:
            load_gateway_config(env_file=str(env_file), base={})
        assert "NEWEBPAY_TIMEOUT_SECONDS from env-file" in str(excinfo.value)

    def test_key_error_keeps_its_type(self):
        with pytest.raises(InvalidKeyMaterial):
            load_gateway_config(env_file=None, base=dict(CREDENTIALS, NEWEBPAY_HASH_KEY="short"))
