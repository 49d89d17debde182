# Lingo Validation Errors (Grammar)
class InvalidConditionLingo(Exception):
    """Invalid lingo grammar."""


# Conditions
class InvalidCondition(ValueError):
    """Invalid value for condition."""


# Context Variable
class UnsupportedContextVariable(InvalidCondition):
    """Only the requesting wallet's address may be referenced symbolically."""
