import json
import tempfile
import unittest
from pathlib import Path

from fast_deploy.cli import _normalize_argv, run_cli
from fast_deploy.diagnostics import DiagnosticsSink
from fast_deploy.errors import TransportError
from fast_deploy.orchestrator import DeployReport

CONFIG = {
    "remotePath": "/var/www/html/my-app",
    "server": {"host": "h", "username": "u", "password": "p"},
}


class RecordingSink(DiagnosticsSink):
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def warn(self, message: str) -> None:
        self.messages.append(("warn", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def text(self, level: str) -> str:
        return "\n".join(message for kind, message in self.messages if kind == level)


class StubDeployer:
    instances: list["StubDeployer"] = []
    error = None

    def __init__(self, sink=None, cwd=None) -> None:
        self.sink = sink
        self.cwd = cwd
        self.options = None
        StubDeployer.instances.append(self)

    def deploy(self, options):
        self.options = options
        if StubDeployer.error is not None:
            raise StubDeployer.error
        return DeployReport(host="h", local_path="dist", remote_path=options.remote_path)


class CLITestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.cwd = Path(self._tmp.name)
        self.sink = RecordingSink()
        StubDeployer.instances = []
        StubDeployer.error = None

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def run_cli(self, *argv: str) -> int:
        return run_cli(
            list(argv), cwd=self.cwd, sink=self.sink, deployer_factory=StubDeployer
        )


class DeployCommandTests(CLITestCase):
    def test_deploy_is_the_default_command(self) -> None:
        (self.cwd / ".fastdeploy").write_text(json.dumps(CONFIG))

        self.assertEqual(self.run_cli(), 0)
        self.assertEqual(len(StubDeployer.instances), 1)
        deployer = StubDeployer.instances[0]
        self.assertEqual(deployer.options.remote_path, "/var/www/html/my-app")
        self.assertEqual(deployer.cwd, self.cwd)
        self.assertIn("Using configuration file:", self.sink.text("info"))

    def test_mode_shortcut_selects_mode_config(self) -> None:
        (self.cwd / ".fastdeploy").write_text(json.dumps(CONFIG))
        dev_config = dict(CONFIG, remotePath="/var/www/dev")
        (self.cwd / ".fastdeploy.dev").write_text(json.dumps(dev_config))

        self.assertEqual(self.run_cli("--dev"), 0)
        self.assertEqual(StubDeployer.instances[0].options.remote_path, "/var/www/dev")

    def test_shortcut_overrides_mode_option(self) -> None:
        (self.cwd / ".fastdeploy").write_text(json.dumps(CONFIG))
        (self.cwd / ".fastdeploy.prod").write_text(
            json.dumps(dict(CONFIG, remotePath="/var/www/prod"))
        )

        self.assertEqual(self.run_cli("deploy", "--mode", "test", "--prod"), 0)
        self.assertEqual(StubDeployer.instances[0].options.remote_path, "/var/www/prod")

    def test_missing_mode_config_falls_back(self) -> None:
        (self.cwd / ".fastdeploy").write_text(json.dumps(CONFIG))

        self.assertEqual(self.run_cli("-m", "staging"), 0)
        self.assertIn(".fastdeploy.staging", self.sink.text("warn"))

    def test_missing_config_exits_non_zero(self) -> None:
        self.assertEqual(self.run_cli(), 1)
        self.assertIn("Configuration file not found", self.sink.text("error"))
        self.assertEqual(StubDeployer.instances, [])

    def test_invalid_json_exits_non_zero(self) -> None:
        (self.cwd / ".fastdeploy").write_text("{")

        self.assertEqual(self.run_cli(), 1)
        self.assertIn("valid JSON", self.sink.text("error"))

    def test_deploy_failure_exits_non_zero(self) -> None:
        (self.cwd / ".fastdeploy").write_text(json.dumps(CONFIG))
        StubDeployer.error = TransportError("boom", operation="upload")

        self.assertEqual(self.run_cli("--config", ".fastdeploy"), 1)

    def test_normalize_argv(self) -> None:
        self.assertEqual(_normalize_argv([]), ["deploy"])
        self.assertEqual(_normalize_argv(["--prod"]), ["deploy", "--prod"])
        self.assertEqual(_normalize_argv(["init"]), ["init"])
        self.assertEqual(_normalize_argv(["--version"]), ["--version"])


class InitCommandTests(CLITestCase):
    def test_init_creates_config_and_gitignore(self) -> None:
        self.assertEqual(self.run_cli("init"), 0)

        config = json.loads((self.cwd / ".fastdeploy").read_text())
        self.assertEqual(config["localPath"], "dist")
        self.assertEqual(config["server"]["port"], 22)
        self.assertEqual((self.cwd / ".gitignore").read_text(), ".fastdeploy*\n")
        self.assertIn("package.json not found", self.sink.text("warn"))

    def test_init_updates_existing_project_files(self) -> None:
        (self.cwd / "package.json").write_text(json.dumps({"name": "site"}))
        (self.cwd / ".gitignore").write_text("node_modules")

        self.run_cli("init")

        package = json.loads((self.cwd / "package.json").read_text())
        self.assertEqual(package["scripts"]["publish"], "fastdeploy")
        self.assertEqual(
            (self.cwd / ".gitignore").read_text(), "node_modules\n.fastdeploy*\n"
        )

    def test_init_is_idempotent(self) -> None:
        (self.cwd / "package.json").write_text(
            json.dumps({"scripts": {"publish": "np"}})
        )
        self.run_cli("init")
        self.sink.messages.clear()

        self.run_cli("init")

        self.assertEqual(self.sink.text("success"), "")
        self.assertIn("already exists", self.sink.text("info"))
        package = json.loads((self.cwd / "package.json").read_text())
        self.assertEqual(package["scripts"]["publish"], "np")
        self.assertEqual((self.cwd / ".gitignore").read_text().count(".fastdeploy*"), 1)

    def test_non_ascii_package_json_text_is_preserved(self) -> None:
        (self.cwd / "package.json").write_text(
            json.dumps({"name": "site", "description": "部署工具 café"}, ensure_ascii=False),
            encoding="utf-8",
        )

        self.assertEqual(self.run_cli("init"), 0)

        raw = (self.cwd / "package.json").read_text(encoding="utf-8")
        self.assertIn('"description": "部署工具 café"', raw)
        self.assertNotIn("\\u", raw)
        self.assertEqual(json.loads(raw)["scripts"]["publish"], "fastdeploy")

    def test_commented_gitignore_entry_is_left_alone(self) -> None:
        original = "node_modules\n.fastdeploy*  # secrets\n"
        (self.cwd / ".gitignore").write_text(original)

        self.run_cli("init")

        self.assertEqual((self.cwd / ".gitignore").read_text(), original)
        self.assertIn('".fastdeploy*" already exists in .gitignore.', self.sink.text("info"))

    def test_broken_package_json_does_not_stop_init(self) -> None:
        (self.cwd / "package.json").write_text("{broken")

        self.assertEqual(self.run_cli("init"), 0)
        self.assertIn("Failed to parse or update package.json", self.sink.text("error"))
        self.assertTrue((self.cwd / ".gitignore").exists())


if __name__ == "__main__":
    unittest.main()
