import reset_password

from .conftest import API


def test_reset_password_cli(client, register, app_settings):
    register("jane@example.com", password="old-secret")
    db = app_settings.database_url

    assert reset_password.main(["--db", db, "--email", "Jane@Example.com", "--password", "new-secret"]) == 0
    response = client.post(f"{API}/auth/login", json={"email": "jane@example.com", "password": "new-secret"})
    assert response.status_code == 200
    response = client.post(f"{API}/auth/login", json={"email": "jane@example.com", "password": "old-secret"})
    assert response.status_code == 401


def test_reset_password_cli_errors(client, app_settings, tmp_path):
    db = app_settings.database_url
    assert reset_password.main(["--db", str(tmp_path / "missing.db"), "--email", "a@b.c", "--password", "secret1"]) == 1
    assert reset_password.main(["--db", db, "--email", "a@b.c", "--password", "123"]) == 1
    assert reset_password.main(["--db", db, "--email", "nobody@example.com", "--password", "secret1"]) == 2
