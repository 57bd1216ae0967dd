import yarl


def censor_credentials(url: str) -> str:
    parsed = yarl.URL(url)

    if parsed.password is None:
        return str(parsed)

    return str(parsed.with_password("**"))


def join_url(base_url: str, path: str) -> str:
    """Join a path onto a base URL, treating the base URL as a directory."""
    base = yarl.URL(base_url)

    if not base.path.endswith("/"):
        base = base.with_path(base.path + "/")

    return str(base.join(yarl.URL(path.lstrip("/"))))
