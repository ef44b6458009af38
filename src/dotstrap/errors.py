class DotstrapError(Exception):
    pass


class ConfigError(DotstrapError):
    """Profile is malformed or names a package it cannot place."""


class ConflictParseError(DotstrapError):
    """The merge tool's simulated run failed without a readable conflict report."""

    def __init__(self, package, output):
        super().__init__(f"Could not read conflicts for '{package}' from stow output:\n{output}")
        self.package = package
        self.output = output
