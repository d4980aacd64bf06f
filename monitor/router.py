"""Human-in-the-loop routing of alerts.

States:
    MONITORING                    alerts are routed as they arrive
    AWAITING_APPROVAL             automation is off; an operator must approve,
                                  reject or dismiss the held alerts
    AWAITING_ESCALATION_APPROVAL  an ESCALATE alert fired with automation on;
                                  an operator must authorize or dismiss it

While awaiting, routing is suspended: cycles still compute a status but
nothing new is logged or held until the pending decision is consumed.
"""
import logging

from models.enums import Command, LogType, RouterState

logger = logging.getLogger("cogsync.monitor.router")


class DecisionRouter:
    def __init__(self, audit_log, domain=""):
        self.audit_log = audit_log
        self.domain = domain
        self.state = RouterState.MONITORING
        self.pending = []

    @property
    def awaiting(self):
        return self.state != RouterState.MONITORING

    def route(self, status, config, subject=None):
        """Route one cycle's status. Returns the alerts auto-logged this cycle."""
        if not config.machine_on:
            return []
        if self.awaiting:
            if status.alerts:
                logger.debug(f"{self.domain}: {self.state.value}, routing suspended")
            return []
        if not status.alerts:
            return []

        if not config.automation_on:
            self._hold(RouterState.AWAITING_APPROVAL, status.alerts)
            return []

        for alert in status.alerts:
            target = subject if subject is not None else alert.reason
            self.audit_log.log(f"[AUTO] {alert.action.value}: {alert.rule} - {target}", LogType.ALERT)

        # Automation never authorizes an escalation on its own
        if status.needs_escalation:
            self._hold(RouterState.AWAITING_ESCALATION_APPROVAL, status.escalation_alerts)
        return list(status.alerts)

    def _hold(self, state, alerts):
        self.state = state
        self.pending = list(alerts)
        logger.info(f"{self.domain}: {len(self.pending)} alert(s) held, state -> {state.value}")

    def handle(self, command):
        """Consume an operator command. Returns False when it has nothing to act on."""
        command = Command(command)

        if self.state == RouterState.AWAITING_APPROVAL:
            if command == Command.APPROVE:
                self._write_pending("[APPROVED] {action}: {rule}", LogType.MANUAL)
            elif command == Command.REJECT:
                self._write_pending("[REJECTED] {action}: {rule}", LogType.MANUAL)
            self._release(command)
            return True

        if self.state == RouterState.AWAITING_ESCALATION_APPROVAL:
            if command == Command.REJECT:
                logger.warning(f"{self.domain}: escalations can only be authorized or dismissed")
                return False
            if command == Command.APPROVE:
                self._write_pending("[ESCALATION AUTHORIZED] {rule}", LogType.ALERT)
            self._release(command)
            return True

        logger.debug(f"{self.domain}: {command.value} ignored, nothing pending")
        return False

    def approve(self):
        return self.handle(Command.APPROVE)

    def reject(self):
        return self.handle(Command.REJECT)

    def dismiss(self):
        return self.handle(Command.DISMISS)

    def available_commands(self):
        if self.state == RouterState.AWAITING_APPROVAL:
            return [Command.APPROVE, Command.REJECT, Command.DISMISS]
        if self.state == RouterState.AWAITING_ESCALATION_APPROVAL:
            return [Command.APPROVE, Command.DISMISS]
        return []

    def _write_pending(self, template, entry_type):
        for alert in self.pending:
            self.audit_log.log(template.format(action=alert.action.value, rule=alert.rule), entry_type)

    def _release(self, command):
        logger.info(f"{self.domain}: {command.value} {len(self.pending)} alert(s), state -> Monitoring")
        self.state = RouterState.MONITORING
        self.pending = []
