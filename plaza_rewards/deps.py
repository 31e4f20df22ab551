from typing import Callable

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from sqlalchemy.orm import Session

from plaza_rewards.containers import Container
from plaza_rewards.database.session import get_db
from plaza_rewards.services.daily_login_service import DailyLoginService
from plaza_rewards.services.token_service import TokenService


@inject
def get_daily_login_service(
    db: Session = Depends(get_db),
    factory: Callable[..., DailyLoginService] = Depends(
        Provide[Container.services.daily_login_service.provider]
    ),
) -> DailyLoginService:
    return factory(db=db)


@inject
def get_token_service(
    db: Session = Depends(get_db),
    factory: Callable[..., TokenService] = Depends(
        Provide[Container.services.token_service.provider]
    ),
) -> TokenService:
    return factory(db=db)
