"""
CLI argument parser and end-to-end pipeline tests.
"""

from pathlib import Path

import yaml

from conftest import FakeResolver, FakeRunner, ScriptedInput
from nhost_setup.cli import main, parse_arguments

WORKDIR_PARTS = ("nhost", "examples", "docker-compose")
HOSTS = [f"{s}.nhost.kyuri.xyz" for s in ("auth", "dashboard", "graphql", "functions", "storage", "mailhog")]


def _env(path: Path) -> dict:
    values = {}
    for line in path.read_text().splitlines():
        if line and not line.startswith("#"):
            key, _, value = line.partition("=")
            values[key] = value
    return values


class TestParseArguments:
    def test_default_values(self):
        args = parse_arguments([])

        assert args.dir == Path.cwd()
        assert args.config is None
        assert args.dry_run is False
        assert args.skip_install is False
        assert args.skip_clone is False
        assert args.strict_dns is False
        assert args.print_context is False

    def test_flags(self):
        args = parse_arguments(["-d", "/srv/nhost", "-c", "site.toml", "--dry-run", "--strict-dns", "--skip-clone"])

        assert args.dir == Path("/srv/nhost")
        assert args.config == Path("site.toml")
        assert args.dry_run is True
        assert args.strict_dns is True
        assert args.skip_clone is True


class TestEndToEnd:
    def test_happy_path(self, tmp_path, capsys):
        runner = FakeRunner(installed={"git", "curl", "docker"})
        provider = ScriptedInput(["ops@example.com", "y"])
        resolver = FakeResolver(resolvable=[
            f"{s}.nhost.kyuri.xyz" for s in ("auth", "dashboard", "graphql", "functions", "storage", "mailhog")
        ])

        code = main(["-d", str(tmp_path)], runner=runner, provider=provider, resolver=resolver, running_as_root=False)

        assert code == 0
        workdir = tmp_path.joinpath(*WORKDIR_PARTS)
        assert runner.commands() == [
            "docker compose version",
            "git clone https://github.com/nhost/nhost.git nhost",
            "docker compose -f docker-compose.prod.yaml up -d",
        ]
        assert runner.calls[-1]["cwd"] == workdir

        env = _env(workdir / ".env")
        assert env["ACME_EMAIL"] == "ops@example.com"
        secrets = [env[k] for k in ("POSTGRES_PASSWORD", "GRAPHQL_ADMIN_SECRET", "JWT_SECRET",
                                    "STORAGE_ACCESS_KEY", "STORAGE_SECRET_KEY")]
        assert len(set(secrets)) == 5
        urls = {k: v for k, v in env.items() if k.endswith("_URL")}
        assert len(urls) == 6
        assert all(v == f"{k[:-4].lower()}.nhost.kyuri.xyz" for k, v in urls.items())

        topology = yaml.safe_load((workdir / "docker-compose.prod.yaml").read_text())
        rules = [
            value
            for service in topology["services"].values()
            for key, value in (service.get("labels") or {}).items()
            if key.endswith(".rule")
        ]
        assert {rule.split("${")[1].split("}")[0] for rule in rules} == set(urls)

        assert (workdir / "nhost-config.txt").exists()
        assert (workdir / ".nhost-setup.state.toml").exists()
        assert (workdir / "initdb.d" / "0001-create-schema.sql").exists()
        assert "Setup completed successfully!" in capsys.readouterr().out

    def test_installer_failure_exits_without_compose(self, tmp_path, capsys):
        runner = FakeRunner(installed={"curl", "docker"}, failures=["install -y git"])
        provider = ScriptedInput(["ops@example.com", "y"])

        code = main(["-d", str(tmp_path)], runner=runner, provider=provider,
                    resolver=FakeResolver(), running_as_root=False)

        assert code == 1
        assert not runner.ran("up -d")
        assert not tmp_path.joinpath(*WORKDIR_PARTS, ".env").exists()
        assert "[ERROR]" in capsys.readouterr().out

    def test_dns_failure_is_advisory(self, tmp_path, capsys):
        runner = FakeRunner(installed={"git", "curl", "docker"})
        provider = ScriptedInput(["ops@example.com", "y", ""])
        resolver = FakeResolver(resolvable=[
            f"{s}.nhost.kyuri.xyz" for s in ("auth", "dashboard", "graphql", "functions", "storage")
        ])

        code = main(["-d", str(tmp_path), "--skip-clone"], runner=runner, provider=provider,
                    resolver=resolver, running_as_root=False)

        assert code == 0
        out = capsys.readouterr().out
        assert out.count("Please ensure you have set up the following DNS A records") == 1
        assert runner.ran("docker compose -f docker-compose.prod.yaml up -d")
        assert (tmp_path / ".env").exists()

    def test_declined_plan_exits_nonzero(self, tmp_path):
        runner = FakeRunner()

        code = main(["-d", str(tmp_path)], runner=runner, provider=ScriptedInput(["ops@example.com", "n"]),
                    resolver=FakeResolver(), running_as_root=False)

        assert code == 1
        assert runner.calls == []

    def test_root_declined_exits_before_questions(self, tmp_path):
        provider = ScriptedInput(["n"])

        code = main(["-d", str(tmp_path)], runner=FakeRunner(), provider=provider,
                    resolver=FakeResolver(), running_as_root=True)

        assert code == 1
        assert len(provider.prompts) == 1

    def test_dry_run_renders_only(self, tmp_path, capsys):
        runner = FakeRunner()

        code = main(["-d", str(tmp_path), "--dry-run", "--skip-clone", "--print-context"], runner=runner,
                    provider=ScriptedInput(["ops@example.com", "y"]), resolver=FakeResolver(),
                    running_as_root=False)

        assert code == 0
        assert runner.calls == []
        assert (tmp_path / "docker-compose.prod.yaml").exists()
        out = capsys.readouterr().out
        assert "***REDACTED***" in out
        assert _env(tmp_path / ".env")["POSTGRES_PASSWORD"] not in out

    def test_strict_dns_aborts_before_compose(self, tmp_path):
        runner = FakeRunner(installed={"git", "curl", "docker"})

        code = main(["-d", str(tmp_path), "--skip-clone", "--strict-dns"], runner=runner,
                    provider=ScriptedInput(["ops@example.com", "y", ""]), resolver=FakeResolver(),
                    running_as_root=False)

        assert code == 1
        assert not runner.ran("up -d")

    def test_invalid_settings_file(self, tmp_path):
        (tmp_path / "nhost-setup.toml").write_text("[unknown]\nx = 1\n")

        code = main(["-d", str(tmp_path)], runner=FakeRunner(), provider=ScriptedInput([]),
                    resolver=FakeResolver(), running_as_root=False)

        assert code == 1

    def test_dry_run_leaves_checkout_path_for_real_run(self, tmp_path):
        code = main(["-d", str(tmp_path), "--dry-run"], runner=FakeRunner(),
                    provider=ScriptedInput(["ops@example.com", "y"]), resolver=FakeResolver(),
                    running_as_root=False)

        assert code == 0
        assert not (tmp_path / "nhost").exists()
        assert (tmp_path / ".env").exists()

        runner = FakeRunner(installed={"git", "curl", "docker"})
        code = main(["-d", str(tmp_path)], runner=runner, provider=ScriptedInput(["ops@example.com", "y"]),
                    resolver=FakeResolver(resolvable=HOSTS), running_as_root=False)

        assert code == 0
        assert runner.ran("git clone https://github.com/nhost/nhost.git nhost")

    def test_folder_without_git_is_cloned_again(self, tmp_path):
        tmp_path.joinpath(*WORKDIR_PARTS).mkdir(parents=True)
        runner = FakeRunner(installed={"git", "curl", "docker"})

        main(["-d", str(tmp_path), "--skip-install"], runner=runner,
             provider=ScriptedInput(["ops@example.com", "y"]), resolver=FakeResolver(resolvable=HOSTS),
             running_as_root=False)

        assert runner.ran("git clone")

    def test_existing_checkout_is_reused(self, tmp_path):
        (tmp_path / "nhost" / ".git").mkdir(parents=True)
        runner = FakeRunner(installed={"git", "curl", "docker"})

        code = main(["-d", str(tmp_path), "--skip-install"], runner=runner,
                    provider=ScriptedInput(["ops@example.com", "y"]), resolver=FakeResolver(resolvable=HOSTS),
                    running_as_root=False)

        assert code == 0
        assert not runner.ran("git clone")
        assert tmp_path.joinpath(*WORKDIR_PARTS, ".env").exists()

    def test_skip_install_runs_no_apt(self, tmp_path):
        runner = FakeRunner()

        code = main(["-d", str(tmp_path), "--skip-install", "--skip-clone"], runner=runner,
                    provider=ScriptedInput(["ops@example.com", "y"]), resolver=FakeResolver(resolvable=HOSTS),
                    running_as_root=False)

        assert code == 0
        assert not runner.ran("apt-get")
        assert runner.commands() == ["docker compose -f docker-compose.prod.yaml up -d"]

    def test_missing_config_file_exits_before_prompts(self, tmp_path, capsys):
        provider = ScriptedInput([])
        runner = FakeRunner()

        code = main(["-d", str(tmp_path), "-c", str(tmp_path / "missing.toml")], runner=runner,
                    provider=provider, resolver=FakeResolver(), running_as_root=False)

        assert code == 1
        assert provider.prompts == []
        assert runner.calls == []
        assert "Settings file not found" in capsys.readouterr().out
