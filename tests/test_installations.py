"""Tests for `sunset_bot.core.installations`."""

from __future__ import annotations

import pytest

from sunset_bot.core.errors import InstallationNotFound
from sunset_bot.core.installations import (
    BOT_SCOPES,
    EnterpriseInstallKey,
    TeamInstallKey,
    install_key,
)
from sunset_bot.core.models import TenantUserAccount


def remaining_users(db):
    db.expire_all()
    return sorted(account.settings["user_id"] for account in db.query(TenantUserAccount))


def test_install_key_prefers_enterprise_for_enterprise_installs():
    assert install_key(enterprise_id="E1", team_id="T1", user_id="U1", is_enterprise_install=True) == (
        EnterpriseInstallKey(enterprise_id="E1", user_id="U1")
    )
    assert install_key(enterprise_id="E1", team_id="T1", user_id="U1", is_enterprise_install=False) == (
        TeamInstallKey(team_id="T1", user_id="U1")
    )


def test_install_key_requires_an_identifier():
    with pytest.raises(InstallationNotFound):
        install_key(enterprise_id=None, team_id=None, user_id="U1", is_enterprise_install=True)


def test_find_team_installation(installation_store, add_account):
    add_account(user_id="U1", team_id="T1")

    installation = installation_store.find_installation(enterprise_id=None, team_id="T1", user_id="U1")

    assert installation.bot_token == "xoxb-U1"
    assert installation.team_id == "T1"
    assert installation.team_name == "Acme"
    assert installation.user_id == "U1"
    assert installation.app_id == "A1"
    assert installation.bot_scopes == BOT_SCOPES
    assert installation.is_enterprise_install is False


def test_find_enterprise_installation(installation_store, add_account):
    add_account(
        user_id="U9",
        team_id=None,
        enterprise_id="E1",
        enterprise={"id": "E1", "name": "Globex"},
        is_enterprise_install=True,
    )

    installation = installation_store.find_installation(
        enterprise_id="E1", team_id=None, user_id="U9", is_enterprise_install=True
    )

    assert installation.enterprise_id == "E1"
    assert installation.enterprise_name == "Globex"
    assert installation.is_enterprise_install is True


def test_find_missing_installation_fails(installation_store, add_account):
    add_account(user_id="U1", team_id="T1")

    with pytest.raises(InstallationNotFound):
        installation_store.find_installation(enterprise_id=None, team_id="T1", user_id="U2")
    with pytest.raises(InstallationNotFound):
        installation_store.find_installation(enterprise_id=None, team_id="T2", user_id="U1")


def test_delete_team_installation_for_one_user(installation_store, add_account, db):
    add_account(tenant_user_id="tu-1", user_id="U1", team_id="T1")
    add_account(tenant_user_id="tu-2", user_id="U2", team_id="T1")

    assert installation_store.delete_installation(enterprise_id=None, team_id="T1", user_id="U1") is None

    assert remaining_users(db) == ["U2"]


def test_delete_whole_team(installation_store, add_account, db):
    add_account(tenant_user_id="tu-1", user_id="U1", team_id="T1")
    add_account(tenant_user_id="tu-2", user_id="U2", team_id="T1")
    add_account(tenant_user_id="tu-3", user_id="U3", team_id="T2")

    installation_store.delete_installation(enterprise_id=None, team_id="T1")

    assert remaining_users(db) == ["U3"]


def test_delete_enterprise_uses_enterprise_id(installation_store, add_account, db):
    add_account(tenant_user_id="tu-1", user_id="U1", team_id=None, enterprise_id="E1", is_enterprise_install=True)
    add_account(tenant_user_id="tu-2", user_id="U2", team_id="E1")

    installation_store.delete_installation(enterprise_id="E1", team_id=None, user_id="U1")

    assert remaining_users(db) == ["U2"]


def test_delete_without_match_is_silent(installation_store, add_account, db):
    add_account(user_id="U1", team_id="T1")

    assert installation_store.delete_installation(enterprise_id=None, team_id="T9", user_id="U1") is None
    assert remaining_users(db) == ["U1"]
