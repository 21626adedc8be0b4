from fastapi import Request

from moodgarden.settings import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
