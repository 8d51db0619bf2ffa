"""Azure Active Directory authority hosts and well-known resource identifiers."""

from urllib.parse import urljoin


class ResourceIds:
    """Resource identifiers of Azure services."""

    KEY_VAULT = "https://vault.azure.net/"
    GRAPH = "https://graph.windows.net/"
    ARM = "https://management.azure.com/"
    SQL_AZURE = "https://database.windows.net/"
    DATA_LAKE = "https://datalake.azure.net/"


class AzureAuthorityHosts:
    """Authority hosts of the Azure clouds."""

    AZURE_PUBLIC_CLOUD = "https://login.microsoftonline.com/"
    AZURE_CHINA = "https://login.chinacloudapi.cn/"
    AZURE_GERMANY = "https://login.microsoftonline.de/"
    AZURE_GOVERNMENT = "https://login.microsoftonline.us/"

    _DEFAULT_SCOPES = {
        AZURE_PUBLIC_CLOUD: "https://management.core.windows.net//.default",
        AZURE_CHINA: "https://management.core.chinacloudapi.cn//.default",
        AZURE_GERMANY: "https://management.core.cloudapi.de//.default",
        AZURE_GOVERNMENT: "https://management.core.usgovcloudapi.net//.default",
    }

    _CLOUD_NAMES = {
        "public": AZURE_PUBLIC_CLOUD,
        "china": AZURE_CHINA,
        "germany": AZURE_GERMANY,
        "government": AZURE_GOVERNMENT,
    }

    @classmethod
    def resolve(cls, authority: str) -> str:
        """Resolve a cloud name (``public``, ``china``, ...) or URL to a host URL."""
        host = cls._CLOUD_NAMES.get(authority.strip().lower())
        if host is not None:
            return host
        if "://" not in authority:
            raise ValueError(f"Unknown Azure cloud: {authority}")
        return authority if authority.endswith("/") else authority + "/"

    @classmethod
    def get_default_scope(cls, authority_host: str) -> str | None:
        """Return the management scope of a known authority host, else None."""
        return cls._DEFAULT_SCOPES.get(authority_host)

    @staticmethod
    def get_device_code_redirect_uri(authority_host: str) -> str:
        return urljoin(authority_host, "/common/oauth2/nativeclient")
