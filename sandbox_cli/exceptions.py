class SandboxCliError(Exception):
    """Base exception for all sandbox-cli operations"""
    pass

class ConfigurationError(SandboxCliError):
    """Raised when the local environment (cache path, .edgerc) is not usable"""
    pass

class SandboxConfigError(SandboxCliError):
    """Raised when a sandbox client configuration cannot be read or built"""
    pass

class CorruptLocalStateError(SandboxCliError, ValueError):
    """Raised when a locally persisted JSON file cannot be parsed"""
    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Local state file {path} is corrupt: {reason}")

class SandboxNotFoundError(SandboxCliError):
    """Raised when a sandbox is not known locally"""
    pass

class SandboxApiError(SandboxCliError):
    """Raised when the sandbox API returns a non-2xx response"""
    def __init__(self, status_code, body, method=None, path=None):
        self.status_code = status_code
        self.body = body
        self.method = method
        self.path = path
        super().__init__(f"got error code: {status_code} calling {method} {path}\n{body}")

class SandboxClientError(SandboxCliError):
    """Raised when the sandbox client runtime cannot be installed or started"""
    pass

class RecipeError(SandboxCliError):
    """Raised when a recipe file is missing or invalid"""
    pass
