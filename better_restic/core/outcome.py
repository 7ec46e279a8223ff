"""Classification of finished restic invocations.

Failures are recognised by matching phrases in restic's human-readable
stderr. restic has no structured error output for these cases, so the
phrases below track its wording: after a restic upgrade a category can
silently stop matching and the failure falls through to GENERIC_FAILURE
instead of raising anything here.
"""
from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass
from enum import Enum

from .command_builder import PASSWORD_ENV, SSH_COMMAND_ENV, CommandBuilder, Invocation
from .config import ResticConfig


class OutcomeCategory(Enum):
    SUCCESS = "success"
    DRY_RUN_SUCCESS = "dry_run_success"
    REPOSITORY_UNINITIALIZED = "repository_uninitialized"
    PASSWORD_ERROR = "password_error"
    GENERIC_FAILURE = "generic_failure"
    SPAWN_FAILURE = "spawn_failure"


REPOSITORY_PHRASES = (
    "unable to open config file",
    "is there a repository",
    "repository not found",
)
PASSWORD_PHRASES = (
    "empty password",
    "password",
)

# Checked in order; the first match picks the category, every match adds a hint.
FAILURE_RULES: tuple[tuple[tuple[str, ...], OutcomeCategory], ...] = (
    (REPOSITORY_PHRASES, OutcomeCategory.REPOSITORY_UNINITIALIZED),
    (PASSWORD_PHRASES, OutcomeCategory.PASSWORD_ERROR),
)


@dataclass(frozen=True)
class InvocationResult:
    invocation: Invocation
    returncode: int | None
    stdout: str
    stderr: str
    category: OutcomeCategory
    hints: tuple[str, ...] = ()
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.category in (OutcomeCategory.SUCCESS, OutcomeCategory.DRY_RUN_SUCCESS)

    @property
    def detail(self) -> str:
        if self.stderr.strip():
            return self.stderr.strip()
        if self.stdout.strip():
            return self.stdout.strip()
        if self.returncode is None:
            return "restic could not be started"
        return f"restic exited with code {self.returncode}"


class OutcomeClassifier:
    def __init__(self, restic: ResticConfig, builder: CommandBuilder | None = None) -> None:
        self._restic = restic
        self._builder = builder or CommandBuilder()

    def classify(
        self,
        invocation: Invocation,
        completed: subprocess.CompletedProcess[str],
        *,
        dry_run: bool,
    ) -> InvocationResult:
        stdout = completed.stdout or ""
        stderr = completed.stderr or ""

        if completed.returncode == 0:
            category = OutcomeCategory.DRY_RUN_SUCCESS if dry_run else OutcomeCategory.SUCCESS
            return InvocationResult(
                invocation, completed.returncode, stdout, stderr, category, dry_run=dry_run
            )

        category = OutcomeCategory.GENERIC_FAILURE
        hints: list[str] = []
        lowered = stderr.lower()
        for phrases, rule_category in FAILURE_RULES:
            if not any(phrase in lowered for phrase in phrases):
                continue
            if category is OutcomeCategory.GENERIC_FAILURE:
                category = rule_category
            hints.append(self._hint_for(rule_category))

        return InvocationResult(
            invocation,
            completed.returncode,
            stdout,
            stderr,
            category,
            tuple(hints),
            dry_run,
        )

    def spawn_failure(
        self,
        invocation: Invocation,
        reason: str,
        *,
        dry_run: bool,
    ) -> InvocationResult:
        hint = (
            f"Could not run '{invocation.program}' ({reason}). Install restic "
            "(https://restic.net) and make sure it is on PATH."
        )
        return InvocationResult(
            invocation,
            None,
            "",
            "",
            OutcomeCategory.SPAWN_FAILURE,
            (hint,),
            dry_run,
        )

    def _hint_for(self, category: OutcomeCategory) -> str:
        if category is OutcomeCategory.REPOSITORY_UNINITIALIZED:
            return self._init_hint()
        return self._password_hint()

    def _init_hint(self) -> str:
        init = self._builder.init(self._restic)
        prefix: list[str] = []
        if SSH_COMMAND_ENV in init.env:
            prefix.append(f"{SSH_COMMAND_ENV}={shlex.quote(init.env[SSH_COMMAND_ENV])}")
        if PASSWORD_ENV in init.env:
            prefix.append(f"{PASSWORD_ENV}=<your password>")
        command = " ".join([*prefix, shlex.join(init.argv)])

        lines = [
            "The repository does not appear to be initialized. Initialize it with:",
            f"    {command}",
        ]
        mechanism = self._restic.credential_mechanism
        if mechanism == "password_command":
            lines.append("The password is read from restic.password_command.")
        elif mechanism == "password":
            lines.append("Use the password from restic.password in config.yaml.")
        else:
            lines.append("No password is configured; restic will prompt for one.")
        if self._restic.ssh_command:
            lines.append("The SSH transport uses restic.ssh_command.")
        return "\n".join(lines)

    def _password_hint(self) -> str:
        return "\n".join(
            [
                "restic rejected or could not obtain the repository password. Supported options:",
                "    1. restic.password_command: a command that prints the password",
                "    2. restic.password: the password itself (passed via RESTIC_PASSWORD)",
                "    3. neither: restic prompts, or reads RESTIC_PASSWORD from your environment",
            ]
        )


def format_diagnostic(result: InvocationResult) -> str:
    title = {
        OutcomeCategory.REPOSITORY_UNINITIALIZED: "Repository not initialized",
        OutcomeCategory.PASSWORD_ERROR: "Password error",
        OutcomeCategory.GENERIC_FAILURE: "Backup failed",
        OutcomeCategory.SPAWN_FAILURE: "Could not start restic",
    }.get(result.category, "Backup finished")

    lines = [
        f"=== {title} ===",
        f"Command:   {result.invocation.display()}",
    ]
    if result.returncode is not None:
        lines.append(f"Exit code: {result.returncode}")
    if result.category is not OutcomeCategory.SPAWN_FAILURE:
        lines.extend(["Output:", _indent(result.detail)])
    for hint in result.hints:
        lines.extend(["", hint])
    return "\n".join(lines)


def _indent(text: str) -> str:
    return "\n".join(f"    {line}" for line in text.splitlines())
