from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceLedger
from .attendance.workflow import ValidationWorkflow
from .badges.client import BadgeServiceClient
from .badges.gateway import BadgeGateway, HttpBadgeGateway
from .classes.mysql_class_repository import MySQLClassRepository
from .classes.repository import ClassRepository
from .classes.service import EnrollmentRegistry
from .common.datetime_utils import utc_now
from .core.constants import DEFAULT_BADGE_TIMEOUT_SECONDS, DEFAULT_ORACLE_TIMEOUT_SECONDS
from .core.enums import ValidationPolicy
from .database.connection import DBConfig, DatabaseConnection
from .identities.mysql_identity_repository import MySQLIdentityRepository
from .identities.oracle import HttpSignatureOracle, SignatureOracle
from .identities.repository import IdentityRepository
from .identities.service import AccountService, AuthService, IdentityResolver


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    identities_repo: IdentityRepository
    classes_repo: ClassRepository
    attendance_repo: AttendanceRepository
    badge_client: Optional[BadgeServiceClient]

    resolver: IdentityResolver
    auth_service: AuthService
    account_service: AccountService
    registry: EnrollmentRegistry
    ledger: AttendanceLedger
    workflow: ValidationWorkflow


def wire(
    *,
    identities_repo: IdentityRepository,
    classes_repo: ClassRepository,
    attendance_repo: AttendanceRepository,
    oracle: SignatureOracle,
    badges: BadgeGateway,
    policy: ValidationPolicy = ValidationPolicy.REQUIRE_MARK,
    conn: Optional[DatabaseConnection] = None,
    badge_client: Optional[BadgeServiceClient] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Container:
    """Build services on top of the given repositories and collaborators."""
    resolver = IdentityResolver(identities_repo)
    registry = EnrollmentRegistry(classes_repo, identities_repo)
    clock = clock or utc_now
    ledger = AttendanceLedger(attendance_repo, registry, clock=clock)
    workflow = ValidationWorkflow(registry, ledger, badges, policy=policy, clock=clock)

    return Container(
        conn=conn,
        identities_repo=identities_repo,
        classes_repo=classes_repo,
        attendance_repo=attendance_repo,
        badge_client=badge_client,
        resolver=resolver,
        auth_service=AuthService(oracle, resolver),
        account_service=AccountService(identities_repo),
        registry=registry,
        ledger=ledger,
        workflow=workflow,
    )


def build_container(*, db_config: dict, settings: object = None) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    badge_client = BadgeServiceClient(
        str(getattr(settings, "BADGE_SERVICE_URL", "") or ""),
        token=str(getattr(settings, "BADGE_SERVICE_TOKEN", "") or ""),
        timeout=float(getattr(settings, "BADGE_TIMEOUT_SECONDS", DEFAULT_BADGE_TIMEOUT_SECONDS)),
    )
    badge_client.connect()

    oracle = HttpSignatureOracle(
        str(getattr(settings, "IDENTITY_ORACLE_URL", "") or ""),
        timeout=float(getattr(settings, "ORACLE_TIMEOUT_SECONDS", DEFAULT_ORACLE_TIMEOUT_SECONDS)),
    )

    return wire(
        identities_repo=MySQLIdentityRepository(conn),
        classes_repo=MySQLClassRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        oracle=oracle,
        badges=HttpBadgeGateway(badge_client),
        policy=ValidationPolicy(str(getattr(settings, "VALIDATION_POLICY", ValidationPolicy.REQUIRE_MARK.value))),
        conn=conn,
        badge_client=badge_client,
    )
