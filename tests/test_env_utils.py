import pytest

from get_aria2 import env_utils

pytestmark = [pytest.mark.unit]


class TestProxyUrl:
    def test_no_proxy(self):
        assert env_utils.get_proxy_url({}) is None

    def test_lowercase_variable_wins(self):
        environ = {
            "http_proxy": "http://lower:1",
            "HTTP_PROXY": "http://upper:2",
            "PROXY_URL": "http://custom:3",
        }

        assert env_utils.get_proxy_url(environ) == "http://lower:1"

    def test_falls_through_empty_values(self):
        environ = {"http_proxy": "", "HTTP_PROXY": "  ", "PROXY_URL": "http://custom:3"}

        assert env_utils.get_proxy_url(environ) == "http://custom:3"

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("HTTP_PROXY", "http://proxy:8080")

        assert env_utils.get_proxy_url() == "http://proxy:8080"


class TestGithubToken:
    def test_token_present(self):
        assert env_utils.get_github_token({"GITHUB_TOKEN": " ghp_abc "}) == "ghp_abc"

    def test_token_missing_or_blank(self):
        assert env_utils.get_github_token({}) is None
        assert env_utils.get_github_token({"GITHUB_TOKEN": ""}) is None


class TestDetectPlatform:
    @pytest.mark.parametrize(
        "sys_platform, expected",
        [
            ("linux", "linux"),
            ("linux2", "linux"),
            ("win32", "win32"),
            ("cygwin", "win32"),
            ("darwin", "darwin"),
            ("android", "android"),
            ("freebsd13", "freebsd13"),
        ],
    )
    def test_maps_sys_platform(self, monkeypatch, sys_platform, expected):
        monkeypatch.delenv("PREFIX", raising=False)
        monkeypatch.setattr(env_utils.sys, "platform", sys_platform)

        assert env_utils.detect_platform() == expected

    def test_termux_is_android(self, monkeypatch):
        monkeypatch.setenv("PREFIX", "/data/data/com.termux/files/usr")
        monkeypatch.setattr(env_utils.sys, "platform", "linux")

        assert env_utils.is_termux()
        assert env_utils.detect_platform() == "android"


class TestDetectArch:
    @pytest.mark.parametrize(
        "machine, expected",
        [
            ("x86_64", "x64"),
            ("AMD64", "x64"),
            ("i686", "x32"),
            ("i386", "x32"),
            ("aarch64", "arm"),
            ("arm64", "arm"),
            ("armv7l", "arm"),
            ("armv6l", "arm"),
            ("riscv64", "riscv64"),
            ("", ""),
        ],
    )
    def test_maps_machine(self, mocker, machine, expected):
        mocker.patch("get_aria2.env_utils.platform.machine", return_value=machine)

        assert env_utils.detect_arch() == expected
