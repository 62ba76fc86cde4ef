from __future__ import annotations

from wechat_sdk.cli import run_cli

AES_KEY = "abcdefghijklmnopqrstuvwxyz0123456789ABCDEFG"


def test_auth_url_prints_authorization_link(tmp_path, capsys) -> None:
    exit_code = run_cli(
        [
            "--env-file",
            str(tmp_path / "missing.env"),
            "--set",
            "WECHAT_APPID=APPID",
            "auth-url",
            "https://example.com/cb",
            "--scope",
            "userinfo",
        ]
    )

    out = capsys.readouterr().out.strip()
    assert exit_code == 0
    assert out.startswith(
        "https://open.weixin.qq.com/connect/oauth2/authorize?appid=APPID"
        "&redirect_uri=https%3A%2F%2Fexample.com%2Fcb&response_type=code&scope=snsapi_userinfo&state="
    )
    assert out.endswith("#wechat_redirect")


def test_verify_server_reads_token_from_env_file(tmp_path, capsys) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "WECHAT_APPID=APPID\n"
        "WECHAT_SERVER_TOKEN=2faf43d6343a802b6073aae5b3f2f109\n"
        f"WECHAT_ENCODING_AES_KEY={AES_KEY}\n",
        encoding="utf-8",
    )

    exit_code = run_cli(
        [
            "--env-file",
            str(env_file),
            "verify-server",
            "ffb882ae55647757d3b807ff0e9b6098dfc2bc57",
            "1606902086",
            "1246833592",
        ]
    )

    assert exit_code == 0
    assert capsys.readouterr().out.strip() == "valid"


def test_verify_server_rejects_bad_signature(tmp_path, capsys) -> None:
    exit_code = run_cli(
        [
            "--env-file",
            str(tmp_path / "missing.env"),
            "--set",
            "WECHAT_APPID=APPID",
            "--set",
            "WECHAT_SERVER_TOKEN=2faf43d6343a802b6073aae5b3f2f109",
            "verify-server",
            "0000000000000000000000000000000000000000",
            "1606902086",
            "1246833592",
        ]
    )

    assert exit_code == 1
    assert capsys.readouterr().out.strip() == "invalid"


def test_missing_appid_is_reported(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("WECHAT_APPID", raising=False)

    exit_code = run_cli(["--env-file", str(tmp_path / "missing.env"), "auth-url", "https://example.com"])

    assert exit_code == 1


def test_verify_server_without_token_fails(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("WECHAT_SERVER_TOKEN", raising=False)

    exit_code = run_cli(
        [
            "--env-file",
            str(tmp_path / "missing.env"),
            "--set",
            "WECHAT_APPID=APPID",
            "verify-server",
            "sig",
            "1606902086",
            "1246833592",
        ]
    )

    assert exit_code == 1
