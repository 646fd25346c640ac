# cli.py - interactive market-store console
import sys
from datetime import datetime
from typing import List, Dict, Any, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import IntPrompt, Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from sdk.marketclient import MarketClient, DEFAULT_BASE_URL

console = Console()
c = MarketClient(base_url=DEFAULT_BASE_URL)

ROLES = ["producer", "official", "buyer", "administrator"]

# Global state for status messages and caching
status_message = "Ready"
product_cache: List[Dict[str, Any]] = []
user_cache = set()

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Display helpers
# ---------------------------
def show_products(page: Dict[str, Any]):
    products = page.get("products", [])
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title=f"📦 Products - page {page.get('page', 1)}/{page.get('totalPages', 1)} ({page.get('total', 0)} total)",
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", width=12)
    table.add_column("Name", style="bold", width=20)
    table.add_column("Category", width=15)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Qty", justify="right", width=8)

    for p in products:
        table.add_row(
            p.get("id", "N/A"),
            p.get("name", "N/A"),
            p.get("category", "N/A"),
            f"${p.get('price', 0):.2f}",
            str(p.get("quantity", 0)),
        )
    console.print(table)


def show_comments(thread: Dict[str, Any]):
    comments = thread.get("comments", [])
    if not comments:
        console.print("[italic yellow]No comments yet[/italic yellow]")
        return
    table = Table(title=f"💬 Comments on {thread.get('product_id')}", box=box.ROUNDED, header_style="bold green")
    table.add_column("When", style="dim", width=20)
    table.add_column("User", style="bold", width=16)
    table.add_column("Comment", width=50)
    for cm in comments:
        table.add_row(str(cm.get("date", ""))[:19], cm.get("user", ""), cm.get("comment", ""))
    console.print(table)


def show_orders(orders: List[Dict[str, Any]], email: str):
    if not orders:
        console.print("[italic yellow]No orders found[/italic yellow]")
        return

    table = Table(
        title=f"📋 Orders for {email}",
        box=box.ROUNDED,
        header_style="bold yellow",
        title_style="bold yellow",
        show_lines=True
    )
    table.add_column("Order ID", style="dim", width=14)
    table.add_column("Contents", width=40)
    table.add_column("Status", width=10)
    table.add_column("Total", justify="right", width=12)

    for order in orders:
        items = order.get("items", [])
        names = [f"{it.get('name', it.get('product_id', '?'))} x{it.get('quantity', 1)}" for it in items[:3]]
        contents = ", ".join(names) or "No items"
        if len(items) > 3:
            contents += f" +{len(items) - 3} more"
        table.add_row(
            order.get("id", "N/A")[:12] + "...",
            contents,
            f"[yellow]{order.get('status', 'N/A')}[/yellow]",
            f"${order.get('total_price', 0):.2f}",
        )
    console.print(table)


def show_blogs(posts: List[Dict[str, Any]]):
    if not posts:
        console.print("[italic yellow]No blog posts[/italic yellow]")
        return
    table = Table(title="📰 Blog", box=box.ROUNDED, header_style="bold blue", show_lines=True)
    table.add_column("ID", style="dim", width=12)
    table.add_column("Title", style="bold", width=30)
    table.add_column("Author", width=16)
    table.add_column("👍", justify="right", width=5)
    table.add_column("👎", justify="right", width=5)
    for p in posts:
        table.add_row(p.get("id", ""), p.get("title", ""), p.get("author", ""),
                      str(p.get("likes", 0)), str(p.get("dislikes", 0)))
    console.print(table)


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


def _error_message(resp) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}: {resp.text}"
    return body.get("message") or str(body)


# ---------------------------
# API wrapper with exception handling
# ---------------------------
def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) behind a spinner. Errors are reported in the
    status panel and None is returned.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)

        if success_msg:
            status_message = success_msg
            console.print(show_status(success_msg, True))
        return result
    except Exception as e:
        response = getattr(e, "response", None)
        detail = _error_message(response) if response is not None else str(e)
        status_message = f"Error: {detail}"
        console.print(show_status(status_message, False))
        return None


# ---------------------------
# Autocompletion helpers
# ---------------------------
def get_product_completer():
    global product_cache
    if not product_cache:
        page = try_api(c.list_products, 1, 100) or {}
        product_cache = page.get("products", [])
    words = [p.get("id", "") for p in product_cache] + [p.get("name", "") for p in product_cache]
    return WordCompleter([w for w in words if w], ignore_case=True)


def get_user_completer():
    return WordCompleter(list(user_cache), ignore_case=True)


def update_user_cache(email: str):
    if email:
        user_cache.add(email.strip().lower())


def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)
    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        "🌾 market-store",
        "[bold blue]Marketplace console[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_float(message: str, default: float = 10.0) -> float:
    while True:
        raw = Prompt.ask(message, default=str(default))
        try:
            return float(raw)
        except ValueError:
            console.print("[red]Please enter a valid number.[/red]")


def ask_email() -> str:
    email = prompt_with_autocomplete("Enter user email", completer=get_user_completer())
    update_user_cache(email)
    return email


# ---------------------------
# Main menu
# ---------------------------
def menu():
    global status_message, product_cache, user_cache

    console.clear()
    console.print(create_header())

    while True:
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "📦 List products", "8", "📋 List orders"),
            ("2", "🔍 Search products", "9", "👤 Create user"),
            ("3", "➕ Register product", "10", "🔎 Verify user"),
            ("4", "ℹ️ Get product by ID", "11", "📰 List blog posts"),
            ("5", "💬 Add comment", "12", "👍 Vote on a post"),
            ("6", "🗨️ Show comments", "13", "🔄 Reset store"),
            ("7", "✅ Checkout", "q", "👋 Quit"),
        ]
        for row in options:
            menu_table.add_row(*row)
        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 14)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            page = IntPrompt.ask("Page", default=1)
            resp = try_api(c.list_products, page, success_msg="Products loaded")
            if resp is not None:
                product_cache = resp.get("products", [])
                show_products(resp)

        elif choice == "2":
            term = prompt_with_autocomplete("Enter name or category")
            resp = try_api(c.search_products, term, success_msg=f"Search for '{term}' completed")
            if resp is not None:
                show_products(resp)

        elif choice == "3":
            name = prompt_with_autocomplete("Enter product name")
            category = prompt_with_autocomplete("🏷️ Category", default="general")
            price = ask_float("💰 Price", default=10.0)
            qty = IntPrompt.ask("📦 Quantity", default=1)
            description = Prompt.ask("Description", default="")
            resp = try_api(c.register_product, name, category, qty, price, description or None,
                           success_msg=f"Product '{name}' registered")
            if resp:
                console.print(Panel(f"Registered product: [green]{resp['product']['id']}[/green]"))
                product_cache = []

        elif choice == "4":
            pid = prompt_with_autocomplete("Enter product ID", completer=get_product_completer())
            resp = try_api(c.get_product, pid, success_msg=f"Product {pid} loaded")
            if resp:
                show_products({"products": [resp], "total": 1})

        elif choice == "5":
            pid = prompt_with_autocomplete("Enter product ID", completer=get_product_completer())
            user = Prompt.ask("Your name")
            text = Prompt.ask("Comment")
            resp = try_api(c.add_comment, pid, user, text, success_msg="Comment added")
            if resp:
                show_comments(resp)

        elif choice == "6":
            pid = prompt_with_autocomplete("Enter product ID", completer=get_product_completer())
            limit = IntPrompt.ask("How many", default=5)
            resp = try_api(c.get_comments, pid, limit)
            if resp is not None:
                show_comments(resp)

        elif choice == "7":
            email = ask_email()
            cart = []
            while True:
                pid = prompt_with_autocomplete("Product ID (blank to finish)", completer=get_product_completer()).strip()
                if not pid:
                    break
                cart.append((pid, IntPrompt.ask("Quantity", default=1)))
            resp = try_api(c.checkout, email, cart)
            if resp is None:
                continue
            if resp.status_code == 200:
                order = resp.json()["order"]
                console.print(Panel.fit(
                    f"[green]Order placed![/green]\n"
                    f"Order ID: [bold]{order['id']}[/bold]\n"
                    f"Total: [bold]${order['total_price']:.2f}[/bold]",
                    title="✅ Order Confirmation"
                ))
                product_cache = []
            else:
                console.print(Panel.fit(f"[red]Order failed:[/red] {_error_message(resp)}", title="❌ Order Failed"))

        elif choice == "8":
            email = ask_email()
            orders = try_api(c.list_orders, email, success_msg=f"Orders loaded for {email}")
            if orders is not None:
                show_orders(orders, email)

        elif choice == "9":
            name = Prompt.ask("Name")
            email = ask_email()
            role = Prompt.ask("Role", choices=ROLES, default="buyer")
            region = Prompt.ask("Region (optional)", default="")
            profile = {"region": region} if region else {}
            resp = try_api(c.create_user, name, email, role, success_msg=f"User {email} created", **profile)
            if resp:
                console.print(resp)

        elif choice == "10":
            email = ask_email()
            resp = try_api(c.verify_user, email)
            if resp is not None:
                found = "[green]exists[/green]" if resp.get("exists") else "[yellow]not registered[/yellow]"
                console.print(Panel.fit(f"{email}: {found}", title="User verification"))

        elif choice == "11":
            resp = try_api(c.list_blogs, success_msg="Blog posts loaded")
            if resp is not None:
                show_blogs(resp)

        elif choice == "12":
            post_id = Prompt.ask("Post ID")
            direction = Prompt.ask("Vote", choices=["like", "dislike"], default="like")
            voter = Prompt.ask("Voter ID", default="cli")
            resp = try_api(c.vote, post_id, direction, voter, success_msg="Vote recorded")
            if resp:
                show_blogs([resp])

        elif choice == "13":
            if Confirm.ask("[red]This will clear all data. Continue?[/red]"):
                console.print(try_api(c.reset, success_msg="Store reset"))
                product_cache = []
                user_cache = set()

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Goodbye! 👋[/bold green]", title="market-store"))
                sys.exit(0)

        console.print()
        console.rule(style="dim")


def main():
    try:
        menu()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
