"""Master control: the only writer of the machine / automation toggles."""
import logging

from models.alerts import AutomationConfig

logger = logging.getLogger("cogsync.control")


class MasterControl:
    def __init__(self, machine_on=True, automation_on=True):
        self.config = AutomationConfig(machine_on=machine_on, automation_on=automation_on)
        self._schedulers = []

    def attach(self, scheduler):
        """Tie a scheduler's timer to the machine toggle."""
        self._schedulers.append(scheduler)

    def set_machine(self, on):
        self.config.machine_on = bool(on)
        if not self.config.machine_on:
            # Cancellation is synchronous: no cycle runs after this returns
            for s in self._schedulers:
                s.stop()
        else:
            for s in self._schedulers:
                s.start()
        logger.info(f"Machine {'ON' if self.config.machine_on else 'OFF'}")

    def set_automation(self, on):
        self.config.automation_on = bool(on)
        logger.info(f"Automation {'ENABLED' if self.config.automation_on else 'DISABLED'}")

    def toggle_machine(self):
        self.set_machine(not self.config.machine_on)
        return self.config.machine_on

    def toggle_automation(self):
        self.set_automation(not self.config.automation_on)
        return self.config.automation_on
