import pytest

from aio_proxy.config import (
    AdafruitConfig,
    LoggingConfig,
    MQTTConfig,
    ProxyConfig,
    ServerConfig,
)


def make_config(
    *,
    username: str | None = "maker",
    key: str | None = "aio_secret",
    api_base_url: str = "https://io.adafruit.com/api/v2",
    mqtt: MQTTConfig | None = None,
) -> ProxyConfig:
    return ProxyConfig(
        adafruit=AdafruitConfig(
            username=username,
            key=key,
            broker_host="broker.test",
            broker_port=8883,
            api_base_url=api_base_url,
        ),
        mqtt=mqtt or MQTTConfig(),
        server=ServerConfig(host="127.0.0.1", port=0),
        logging=LoggingConfig(),
    )


@pytest.fixture
def proxy_config() -> ProxyConfig:
    return make_config()


@pytest.fixture
def config_factory():
    return make_config
