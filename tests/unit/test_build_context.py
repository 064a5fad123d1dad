"""
构建上下文单元测试
"""

import dataclasses

import pytest

from shipkit.build.build_context import (
    BuildContext,
    Credential,
    ServerConnection,
    create_build_context,
    is_build_server,
)
from shipkit.config.schema import PipelineConfig
from shipkit.errors import BuildError, InvalidVersion, MissingConfiguration


def make_config(**overrides) -> PipelineConfig:
    data = {
        "version": "1.2.3",
        "prerelease": [{"pattern": "^feature/", "label": "alpha"}],
        "package": {"name": "App", "sources": [{"path": "bin"}]},
    }
    data.update(overrides)
    return PipelineConfig.from_dict(data)


SERVER = ServerConnection(url="https://ci.example.com", build_number="17")


class TestCreateBuildContext:
    """create_build_context 测试"""

    def test_developer_build(self, tmp_path):
        """开发者构建不需要服务器参数，构建号使用时间戳"""
        context = create_build_context(make_config(), "release/2.0", tmp_path, attribution=lambda: False)

        assert context.by_developer
        assert not context.by_build_server
        assert context.publish is False
        assert context.server is None
        assert len(context.build_id) == 14 and context.build_id.isdigit()
        assert context.environment == "Development"

    def test_build_server_requires_connection(self, tmp_path):
        """构建服务器触发但缺少连接参数"""
        with pytest.raises(MissingConfiguration, match="mandatory"):
            create_build_context(make_config(), "develop", tmp_path, attribution=lambda: True)

    def test_build_server_build(self, tmp_path):
        context = create_build_context(
            make_config(), "feature/login", tmp_path, server=SERVER, attribution=lambda: True
        )

        assert context.by_build_server
        assert context.build_id == "17"
        assert context.version.full_version == "1.2.3-alpha.17"
        assert context.branch == "feature/login"
        assert context.publish is False

    def test_publish_on_release_branch(self, tmp_path):
        context = create_build_context(
            make_config(), "origin/release/2.0", tmp_path, server=SERVER, attribution=lambda: True
        )

        assert context.publish is True
        assert context.release_name == "release/2.0"
        assert context.branch == "release/2.0"

    def test_output_dir_created_idempotently(self, tmp_path):
        """输出目录已存在时不报错"""
        first = create_build_context(make_config(), "develop", tmp_path, attribution=lambda: False)
        second = create_build_context(make_config(), "develop", tmp_path, attribution=lambda: False)

        assert first.output_dir == second.output_dir == tmp_path.resolve() / "artifacts"
        assert first.output_dir.is_dir()

    def test_environment(self, tmp_path):
        config = make_config(environment="Staging")
        assert create_build_context(config, "develop", tmp_path, attribution=lambda: False).environment == "Staging"
        context = create_build_context(config, "develop", tmp_path, environment="Prod", attribution=lambda: False)
        assert context.environment == "Prod"

    def test_version_file_fallback(self, tmp_path):
        (tmp_path / "VERSION").write_text("2.0.0\n", encoding="utf-8")
        config = make_config(version=None)

        context = create_build_context(config, "develop", tmp_path, attribution=lambda: False)
        assert context.version.full_version == "2.0.0"

    def test_invalid_version_creates_nothing(self, tmp_path):
        """版本解析失败时不创建输出目录"""
        with pytest.raises(InvalidVersion):
            create_build_context(make_config(version="fubar"), "develop", tmp_path, attribution=lambda: False)
        assert not (tmp_path / "artifacts").exists()

    def test_context_is_read_only(self, tmp_path):
        context = create_build_context(make_config(), "develop", tmp_path, attribution=lambda: False)
        with pytest.raises(dataclasses.FrozenInstanceError):
            context.publish = True


class TestCredentials:
    """凭据表测试"""

    def _context(self, tmp_path, **kwargs) -> BuildContext:
        return create_build_context(make_config(), "develop", tmp_path, attribution=lambda: False, **kwargs)

    def test_initial_credentials(self, tmp_path):
        credential = Credential("ci", "secret")
        context = self._context(tmp_path, credentials={"Feed": credential})
        assert context.get_credential("Feed") is credential

    def test_register_once(self, tmp_path):
        """同一标识只能登记一次"""
        context = self._context(tmp_path)
        context.register_credential("Feed", Credential("ci", "secret"))

        with pytest.raises(BuildError):
            context.register_credential("Feed", Credential("other", "x"))

    def test_missing_credential(self, tmp_path):
        context = self._context(tmp_path)
        with pytest.raises(MissingConfiguration) as exc_info:
            context.get_credential("Feed", "upload.credential_id")
        assert "mandatory" in str(exc_info.value)
        assert exc_info.value.config_path == "upload.credential_id"

    def test_empty_credential_id(self, tmp_path):
        with pytest.raises(MissingConfiguration, match="CredentialID"):
            self._context(tmp_path).get_credential("")

    def test_password_masked(self):
        assert "secret" not in repr(Credential("ci", "secret"))


class TestIsBuildServer:
    """触发方判断测试"""

    def test_ci_variables(self):
        assert is_build_server({"TEAMCITY_VERSION": "2023.1"})
        assert is_build_server({"CI": "true"})

    def test_developer(self):
        assert not is_build_server({})
        assert not is_build_server({"CI": ""})

    @pytest.mark.parametrize("value", ["false", "False", "0", "no", "off", " FALSE "])
    def test_disabled_values(self, value):
        """显式关闭的变量不视为构建服务器"""
        assert not is_build_server({"CI": value})
        assert is_build_server({"CI": value, "JENKINS_URL": "https://jenkins"})
