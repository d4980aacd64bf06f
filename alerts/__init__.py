"""Rule evaluation: engine, rule loading, aggregation, what-if and channels."""
from alerts.engine import RuleEngine
from alerts.aggregator import StatusAggregator
from alerts.rules_manager import RulesManager, DomainRegistry
from alerts.whatif import WhatIfEvaluator
from alerts.channels import ConsoleChannel, FileChannel
