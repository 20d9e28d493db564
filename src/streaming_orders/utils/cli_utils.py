from rich.console import Console


def get_rich_console() -> Console: return Console(stderr=True)


def status_mark(ok: bool) -> str:
    return "[bold green]✔[/bold green]" if ok else "[bold red]✖[/bold red]"
