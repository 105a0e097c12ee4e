"""NetBox inventory stack rendering and startup."""

import os
from typing import Callable, Dict, List

from netorchestrator.models import GeneratedSecrets, OrchestratorConfig, ReadinessCheck
from netorchestrator.services.readiness import container_command_probe, http_probe
from netorchestrator.services.renderer import yaml_quote


class NetBoxStackService:
    """Builds the NetBox, PostgreSQL and Redis service definitions."""

    DB_CONTAINER = "netbox-db"
    REDIS_CONTAINER = "netbox-redis"
    APP_CONTAINER = "netbox"
    DB_NAME = "netbox"
    DB_USER = "netbox"
    ENV_FILE = "netbox.env"
    COMPOSE_FILE = "docker-compose.yml"

    def __init__(self, logger, console, renderer):
        self.logger = logger
        self.console = console
        self.renderer = renderer

    def build_env(self, secrets: GeneratedSecrets) -> Dict[str, str]:
        return {
            "ALLOWED_HOSTS": "*",
            "DB_NAME": self.DB_NAME,
            "DB_USER": self.DB_USER,
            "DB_PASSWORD": secrets.netbox_db_password,
            "DB_HOST": self.DB_CONTAINER,
            "DB_PORT": "5432",
            "SECRET_KEY": secrets.netbox_secret_key,
            "REDIS_HOST": self.REDIS_CONTAINER,
            "REDIS_PORT": "6379",
        }

    def build_compose(self, config: OrchestratorConfig, secrets: GeneratedSecrets) -> str:
        network = yaml_quote(config.network_name)
        superuser_email = yaml_quote(f"SUPERUSER_EMAIL={config.netbox_superuser_email}")
        superuser_password = yaml_quote(f"SUPERUSER_PASSWORD={config.netbox_superuser_password}")
        return f"""
services:
  {self.REDIS_CONTAINER}:
    image: redis:7
    container_name: {self.REDIS_CONTAINER}
    restart: unless-stopped
    networks:
      - {network}

  {self.DB_CONTAINER}:
    image: postgres:{config.netbox_postgres_version}
    container_name: {self.DB_CONTAINER}
    environment:
      POSTGRES_USER: {self.DB_USER}
      POSTGRES_PASSWORD: {yaml_quote(secrets.netbox_db_password)}
      POSTGRES_DB: {self.DB_NAME}
    volumes:
      - ./postgres-data:/var/lib/postgresql/data
    restart: unless-stopped
    networks:
      - {network}

  {self.APP_CONTAINER}:
    image: netboxcommunity/netbox:latest
    container_name: {self.APP_CONTAINER}
    env_file:
      - {self.ENV_FILE}
    ports:
      - "{config.netbox_port}:8080"
    environment:
      - {superuser_email}
      - {superuser_password}
    volumes:
      - ./netbox-data:/opt/netbox/netbox/media
    depends_on:
      - {self.DB_CONTAINER}
      - {self.REDIS_CONTAINER}
    restart: unless-stopped
    networks:
      - {network}

networks:
  {network}:
    external: true
""".lstrip()

    def compose_path(self, config: OrchestratorConfig) -> str:
        return os.path.join(config.phase_dir("netbox"), self.COMPOSE_FILE)

    def render(self, config: OrchestratorConfig, secrets: GeneratedSecrets) -> List[str]:
        directory = config.phase_dir("netbox")
        env_path = self.renderer.write(
            os.path.join(directory, self.ENV_FILE),
            self.renderer.render_env(self.build_env(secrets)),
            mode=0o600,
        )
        compose_path = self.renderer.write(self.compose_path(config), self.build_compose(config, secrets))
        return [env_path, compose_path]

    def backing_checks(self, config: OrchestratorConfig, run_cmd: Callable) -> List[ReadinessCheck]:
        return [
            ReadinessCheck(
                name="NetBox PostgreSQL",
                probe=container_command_probe(run_cmd, self.DB_CONTAINER, ["pg_isready", "-U", self.DB_USER]),
                max_attempts=config.readiness_attempts,
                delay_seconds=config.readiness_delay_seconds,
                target=self.DB_CONTAINER,
            ),
            ReadinessCheck(
                name="NetBox Redis",
                probe=container_command_probe(run_cmd, self.REDIS_CONTAINER, ["redis-cli", "ping"]),
                max_attempts=config.readiness_attempts,
                delay_seconds=config.readiness_delay_seconds,
                target=self.REDIS_CONTAINER,
            ),
        ]

    def web_checks(self, config: OrchestratorConfig) -> List[ReadinessCheck]:
        return [
            ReadinessCheck(
                name=f"NetBox web UI on {self.url(config)}",
                probe=http_probe(self.url(config)),
                max_attempts=config.web_readiness_attempts,
                delay_seconds=config.readiness_delay_seconds,
                fatal=False,
                target=self.APP_CONTAINER,
            )
        ]

    def start(self, config: OrchestratorConfig, compose_cmd, run_cmd, docker_runtime, poller):
        compose_file = self.compose_path(config)
        docker_runtime.pull(compose_cmd, compose_file, run_cmd)
        docker_runtime.up(compose_cmd, compose_file, run_cmd, [self.REDIS_CONTAINER, self.DB_CONTAINER])
        poller.wait_for_all(self.backing_checks(config, run_cmd))
        docker_runtime.up(compose_cmd, compose_file, run_cmd, [self.APP_CONTAINER])

    @staticmethod
    def url(config: OrchestratorConfig) -> str:
        return f"http://localhost:{config.netbox_port}"
