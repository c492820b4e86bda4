from fastapi import Request

from piclips.core.config import AppSettings
from piclips.services.pi_network_service import PiNetworkClient
from piclips.services.storage_service import ObjectStorage


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.settings.app

def get_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage

def get_pi_client(request: Request) -> PiNetworkClient:
    return request.app.state.pi_client
