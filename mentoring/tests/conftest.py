from datetime import datetime, timezone as dt_timezone

import pytest
from django.contrib.auth.models import AnonymousUser
from django.contrib.sessions.middleware import SessionMiddleware
from django.test import RequestFactory

from mentoring.models import Role
from mentoring.services.directory import create_account


@pytest.fixture
def make_account(db):
    counter = {"n": 0}

    def _make(role=Role.MENTOR, name=None, email=None, password="secret123"):
        counter["n"] += 1
        email = email or f"{role.replace('+', '_')}{counter['n']}@example.com"
        return create_account(role, email, password, display_name=name or email.split("@")[0])

    return _make


@pytest.fixture
def admin_account(make_account):
    return make_account(Role.ADMIN, name="Admin")


@pytest.fixture
def mentor(make_account):
    return make_account(Role.MENTOR, name="Mentor One")


@pytest.fixture
def other_mentor(make_account):
    return make_account(Role.MENTOR, name="Mentor Two")


@pytest.fixture
def mentee(make_account, mentor):
    account = make_account(Role.MENTEE, name="Mentee One")
    profile = account.mentee_profile
    profile.primary_mentor = mentor
    profile.enrollment_no = "101"
    profile.save()
    return account


@pytest.fixture
def now():
    return datetime(2024, 1, 1, 10, 0, tzinfo=dt_timezone.utc)


@pytest.fixture
def session_request():
    """A bare request with a working session, for login/logout flows."""

    def _build(user=None):
        request = RequestFactory().post("/identity/switch/")
        SessionMiddleware(lambda r: None).process_request(request)
        request.session.save()
        request.user = user or AnonymousUser()
        return request

    return _build
