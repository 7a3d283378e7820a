from fastapi import Request

from dashboard.session import DashboardSession


def get_session(request: Request) -> DashboardSession:
    return request.app.state.session
