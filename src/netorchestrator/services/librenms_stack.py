"""LibreNMS monitoring stack rendering and startup."""

import os
from typing import Callable, Dict, List

from netorchestrator.constants import CONTAINER_GID, CONTAINER_UID
from netorchestrator.models import GeneratedSecrets, OrchestratorConfig, ReadinessCheck
from netorchestrator.services.readiness import container_command_probe, http_probe
from netorchestrator.services.renderer import yaml_quote


class LibreNMSStackService:
    """Builds the LibreNMS application, sidecars, MariaDB and mail relay."""

    DB_CONTAINER = "librenms_db"
    REDIS_CONTAINER = "librenms_redis"
    APP_CONTAINER = "librenms"
    DB_NAME = "librenms"
    DB_USER = "librenms"
    DOTENV_FILE = ".env"
    ENV_FILE = "librenms.env"
    MSMTPD_ENV_FILE = "msmtpd.env"
    COMPOSE_FILE = "docker-compose.yml"
    SIDECARS = (
        (
            "dispatcher",
            "librenms_dispatcher",
            "librenms-dispatcher",
            (),
            ("DISPATCHER_NODE_ID=dispatcher1", "SIDECAR_DISPATCHER=1"),
        ),
        (
            "syslogng",
            "librenms_syslogng",
            "librenms-syslogng",
            ("514:514/tcp", "514:514/udp"),
            ("SIDECAR_SYSLOGNG=1",),
        ),
        (
            "snmptrapd",
            "librenms_snmptrapd",
            "librenms-snmptrapd",
            ("162:162/tcp", "162:162/udp"),
            ("SIDECAR_SNMPTRAPD=1",),
        ),
    )

    def __init__(self, logger, console, renderer):
        self.logger = logger
        self.console = console
        self.renderer = renderer

    def build_dotenv(self, config: OrchestratorConfig, secrets: GeneratedSecrets) -> Dict[str, object]:
        return {
            "TZ": config.timezone,
            "PUID": CONTAINER_UID,
            "PGID": CONTAINER_GID,
            "MYSQL_DATABASE": self.DB_NAME,
            "MYSQL_USER": self.DB_USER,
            "MYSQL_PASSWORD": secrets.librenms_db_password,
        }

    def build_app_env(self) -> Dict[str, str]:
        return {
            "MEMORY_LIMIT": "256M",
            "MAX_INPUT_VARS": "1000",
            "UPLOAD_MAX_SIZE": "16M",
            "OPCACHE_MEM_SIZE": "128",
            "REAL_IP_FROM": "0.0.0.0/32",
            "REAL_IP_HEADER": "X-Forwarded-For",
            "LOG_IP_VAR": "remote_addr",
            "CACHE_DRIVER": "redis",
            "SESSION_DRIVER": "redis",
            "REDIS_HOST": "redis",
            "LIBRENMS_SNMP_COMMUNITY": "librenmsdocker",
            "LIBRENMS_WEATHERMAP": "false",
            "LIBRENMS_WEATHERMAP_SCHEDULE": '"*/5 * * * *"',
        }

    def build_msmtpd_env(self, config: OrchestratorConfig) -> Dict[str, object]:
        smtp = config.smtp
        return {
            "SMTP_HOST": smtp.host,
            "SMTP_PORT": smtp.port,
            "SMTP_TLS": "on",
            "SMTP_STARTTLS": "on",
            "SMTP_TLS_CHECKCERT": "on",
            "SMTP_AUTH": "on",
            "SMTP_USER": smtp.user,
            "SMTP_PASSWORD": smtp.password,
            "SMTP_FROM": smtp.from_address,
        }

    @staticmethod
    def _app_environment(extra=()) -> str:
        lines = [
            "DB_HOST=db",
            "DB_NAME=${MYSQL_DATABASE}",
            "DB_USER=${MYSQL_USER}",
            "DB_PASSWORD=${MYSQL_PASSWORD}",
            "DB_TIMEOUT=60",
        ]
        lines.extend(extra)
        return "\n".join(f'      - "{line}"' for line in lines)

    def _sidecar_block(self, service, container, hostname, ports, extra_env, network) -> str:
        ports_block = ""
        if ports:
            ports_block = "    ports:\n" + "\n".join(f'      - "{port}"' for port in ports) + "\n"

        return f"""
  {service}:
    image: librenms/librenms:latest
    container_name: {container}
    hostname: {hostname}
    cap_add:
      - NET_ADMIN
      - NET_RAW
    depends_on:
      - librenms
      - redis
{ports_block}    volumes:
      - "./librenms:/data"
    env_file:
      - "./{self.ENV_FILE}"
      - "./{self.DOTENV_FILE}"
    environment:
{self._app_environment(extra_env)}
    restart: always
    networks:
      - {network}
"""

    def build_compose(self, config: OrchestratorConfig) -> str:
        network = yaml_quote(config.network_name)
        sidecars = "".join(
            self._sidecar_block(service, container, hostname, ports, extra_env, network)
            for service, container, hostname, ports, extra_env in self.SIDECARS
        )
        return f"""
services:
  db:
    image: mariadb:{config.librenms_mariadb_version}
    container_name: {self.DB_CONTAINER}
    command:
      - "mysqld"
      - "--innodb-file-per-table=1"
      - "--lower-case-table-names=0"
      - "--character-set-server=utf8mb4"
      - "--collation-server=utf8mb4_unicode_ci"
    volumes:
      - "./db:/var/lib/mysql"
    env_file:
      - "./{self.DOTENV_FILE}"
    environment:
      - "MARIADB_RANDOM_ROOT_PASSWORD=yes"
    restart: always
    networks:
      - {network}

  redis:
    image: redis:7.2-alpine
    container_name: {self.REDIS_CONTAINER}
    env_file:
      - "./{self.DOTENV_FILE}"
    restart: always
    networks:
      - {network}

  msmtpd:
    image: crazymax/msmtpd:latest
    container_name: librenms_msmtpd
    env_file:
      - "./{self.MSMTPD_ENV_FILE}"
    restart: always
    networks:
      - {network}

  librenms:
    image: librenms/librenms:latest
    container_name: {self.APP_CONTAINER}
    hostname: librenms
    cap_add:
      - NET_ADMIN
      - NET_RAW
    ports:
      - "{config.librenms_port}:8000"
    depends_on:
      - db
      - redis
      - msmtpd
    volumes:
      - "./librenms:/data"
    env_file:
      - "./{self.ENV_FILE}"
      - "./{self.DOTENV_FILE}"
    environment:
{self._app_environment()}
    restart: always
    networks:
      - {network}
{sidecars}
networks:
  {network}:
    external: true
""".lstrip()

    def compose_path(self, config: OrchestratorConfig) -> str:
        return os.path.join(config.phase_dir("librenms"), self.COMPOSE_FILE)

    def render(self, config: OrchestratorConfig, secrets: GeneratedSecrets) -> List[str]:
        directory = config.phase_dir("librenms")
        render_env = self.renderer.render_env
        return [
            self.renderer.write(
                os.path.join(directory, self.DOTENV_FILE),
                render_env(self.build_dotenv(config, secrets)),
                mode=0o600,
            ),
            self.renderer.write(os.path.join(directory, self.ENV_FILE), render_env(self.build_app_env())),
            self.renderer.write(
                os.path.join(directory, self.MSMTPD_ENV_FILE),
                render_env(self.build_msmtpd_env(config)),
                mode=0o600,
            ),
            self.renderer.write(self.compose_path(config), self.build_compose(config)),
        ]

    def readiness_checks(self, config: OrchestratorConfig, run_cmd: Callable) -> List[ReadinessCheck]:
        ping_db = ["sh", "-c", "mariadb-admin ping --silent || mysqladmin ping --silent"]
        return [
            ReadinessCheck(
                name="LibreNMS MariaDB",
                probe=container_command_probe(run_cmd, self.DB_CONTAINER, ping_db),
                max_attempts=config.readiness_attempts,
                delay_seconds=config.readiness_delay_seconds,
                target=self.DB_CONTAINER,
            ),
            ReadinessCheck(
                name="LibreNMS Redis",
                probe=container_command_probe(run_cmd, self.REDIS_CONTAINER, ["redis-cli", "ping"]),
                max_attempts=config.readiness_attempts,
                delay_seconds=config.readiness_delay_seconds,
                target=self.REDIS_CONTAINER,
            ),
            ReadinessCheck(
                name=f"LibreNMS web UI on {self.url(config)}",
                probe=http_probe(self.url(config)),
                max_attempts=config.librenms_web_readiness_attempts,
                delay_seconds=config.readiness_delay_seconds,
                fatal=False,
                target=self.APP_CONTAINER,
            ),
        ]

    def start(self, config: OrchestratorConfig, compose_cmd, run_cmd, docker_runtime):
        compose_file = self.compose_path(config)
        docker_runtime.pull(compose_cmd, compose_file, run_cmd)
        docker_runtime.up(compose_cmd, compose_file, run_cmd)

    @staticmethod
    def url(config: OrchestratorConfig) -> str:
        return f"http://localhost:{config.librenms_port}"
