from dependency_injector import containers, providers

from plaza_rewards.config import Settings
from plaza_rewards.services.daily_login_service import DailyLoginService
from plaza_rewards.services.token_service import TokenService


class ConfigModule(containers.DeclarativeContainer):
    """Application configuration."""

    config = providers.Singleton(Settings)
    reward_policy = providers.Singleton(
        lambda settings: settings.reward_policy, settings=config
    )


class ServiceModule(containers.DeclarativeContainer):
    """Service layer dependencies.

    db 세션은 요청 단위로 deps 에서 주입합니다.
    """

    config = providers.DependenciesContainer()

    daily_login_service = providers.Factory(
        DailyLoginService, settings=config.config, policy=config.reward_policy
    )
    token_service = providers.Factory(TokenService, settings=config.config)


class Container(containers.DeclarativeContainer):
    """Application container."""

    wiring_config = containers.WiringConfiguration(
        modules=["plaza_rewards.deps"],
    )

    config = providers.Container(ConfigModule)
    services = providers.Container(ServiceModule, config=config)
