import stat
import threading

import pytest

from runlocal.MODELS.run_specification import RunLogOptions, RunSpecification
from runlocal.RUNNERS.container_runtime import DockerEngine
from runlocal.RUNNERS.task_group import RunContext
from runlocal.errors import ContainerCancelledError, ContainerRunError, ContainerRuntimeError


def fake_docker(tmp_path, body):
    """Writes an executable shell script standing in for the docker CLI."""
    path = tmp_path / "docker"
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return str(path)


SPEC = RunSpecification(
    image="web:latest",
    container_name="web-shop-test-api",
    network="pause-shop-test-api",
    env_vars={"PORT": "80"},
    secrets={"DB_PASSWORD": "hunter2"},
    log_options=RunLogOptions(line_prefix="[web] "),
)


def test_build_run_args_for_app():
    args = DockerEngine().build_run_args(SPEC)
    assert args == [
        "run",
        "--env", "DB_PASSWORD",
        "--env", "PORT=80",
        "--name", "web-shop-test-api",
        "--network", "container:pause-shop-test-api",
        "web:latest",
    ]
    assert "hunter2" not in " ".join(args)


def test_build_run_args_for_pause():
    spec = RunSpecification(
        image="amazonlinux:2023",
        container_name="pause-shop-test-api",
        command=["sleep", "infinity"],
        ports={"9090": "80"},
    )
    args = DockerEngine().build_run_args(spec)
    assert args == [
        "run", "--publish", "9090:80", "--name", "pause-shop-test-api",
        "amazonlinux:2023", "sleep", "infinity",
    ]


def test_run_streams_output_and_passes_secrets(tmp_path):
    lines = []
    docker = fake_docker(tmp_path, 'echo "password=$DB_PASSWORD"\necho done')
    engine = DockerEngine(docker_bin=docker, printer=lambda opts, line: lines.append(opts.line_prefix + line))
    engine.run(RunContext(), SPEC)
    assert lines == ["[web] password=hunter2", "[web] done"]


def test_run_nonzero_exit(tmp_path):
    engine = DockerEngine(docker_bin=fake_docker(tmp_path, "exit 3"), printer=lambda o, l: None)
    with pytest.raises(ContainerRunError) as exc:
        engine.run(RunContext(), SPEC)
    assert exc.value.exit_code == 3
    assert exc.value.container == "web-shop-test-api"


def test_run_cancelled(tmp_path):
    engine = DockerEngine(docker_bin=fake_docker(tmp_path, "exec sleep 30"), printer=lambda o, l: None)
    ctx = RunContext()
    timer = threading.Timer(0.2, ctx.cancel)
    timer.start()
    with pytest.raises(ContainerCancelledError):
        engine.run(ctx, SPEC)
    timer.cancel()


def test_is_running(tmp_path):
    assert DockerEngine(docker_bin=fake_docker(tmp_path, "echo 4f2a9c")).is_running("web")
    assert not DockerEngine(docker_bin=fake_docker(tmp_path, "true")).is_running("web")


def test_stop_failure_carries_stderr(tmp_path):
    engine = DockerEngine(docker_bin=fake_docker(tmp_path, 'echo "Error: No such container: web" >&2\nexit 1'))
    with pytest.raises(ContainerRuntimeError) as exc:
        engine.stop("web")
    assert "No such container" in str(exc.value)


def test_missing_docker_binary():
    engine = DockerEngine(docker_bin="/nonexistent/docker")
    with pytest.raises(ContainerRuntimeError):
        engine.check_engine_running()
