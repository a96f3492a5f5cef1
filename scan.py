#!/usr/bin/env python3
"""Command line scan runner for Chef's Eye.

Runs one full scan (identify -> reveal -> preferences -> generate) against
the Gemini gateway without any UI, and prints the resulting recipes.

Usage:
    python scan.py --image images/fridge.jpg
    python scan.py --image images/fridge.jpg --meal-type Dinner --diet Vegetarian
    python scan.py --image images/fridge.jpg --calories 0 --difficulty Chef
    python scan.py --image images/fridge.jpg --save-all   # Store results as favorites
    python scan.py --image images/fridge.jpg --debug      # Show full JSON of each recipe

Features:
- Live ingredient reveal as the workflow stages it
- Rich table of generated recipes
- Optional save of all results to the file-backed favorites slot (STORAGE_DIR)
- Debug mode to display full recipe JSON (photos truncated)
"""

import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from chefs_eye.gateway.gemini import GeminiGateway
from chefs_eye.gateway.images import to_data_url
from chefs_eye.models.models import CALORIE_RANGES, DIETS, DIFFICULTIES, MEAL_TYPES, ScanSession, ScanState, ViewType
from chefs_eye.store.storage import FileStorage
from chefs_eye.utils.logger import logger, set_log_level
from chefs_eye.views.app import ChefApp

console = Console()

USAGE = (
    "Usage: python scan.py --image PATH [--meal-type TYPE] [--diet DIET] "
    "[--difficulty LEVEL] [--calories 0|1|2] [--save-all] [--debug]"
)


def _print_recipes(session: ScanSession, debug: bool = False) -> None:
    if not session.recipes:
        console.print("[yellow]No recipes generated[/yellow]")
        return

    table = Table(title="Chef Gemini suggests", show_lines=True)
    table.add_column("#", justify="right")
    table.add_column("Recipe")
    table.add_column("Category")
    table.add_column("Time")
    table.add_column("kcal", justify="right")
    table.add_column("P / C / F")
    for idx, recipe in enumerate(session.recipes, 1):
        table.add_row(
            str(idx),
            recipe.title,
            recipe.category,
            recipe.time,
            f"{recipe.calories:g}",
            f"{recipe.protein} / {recipe.carbs} / {recipe.fat}",
        )
    console.print(table)

    if debug:
        console.print("[bold cyan]Debug Mode: Full Recipes[/bold cyan]")
        console.print("[dim]" + "=" * 60 + "[/dim]")
        for recipe in session.recipes:
            data = recipe.model_dump(mode="json", by_alias=True)
            if len(data["image"]) > 80:
                data["image"] = data["image"][:80] + "..."
            console.print_json(data=data)
        console.print("[dim]" + "=" * 60 + "[/dim]")


async def run_scan(
    image_path: str,
    meal_type: str = "Lunch",
    diet: str = "Everything",
    difficulty: str = "Simple",
    calorie_level: int = 1,
    save_all: bool = False,
    debug: bool = False,
) -> bool:
    """Run one scan end to end. Returns True if recipes were generated."""
    if debug:
        set_log_level("DEBUG")

    image_file = Path(image_path)
    if not image_file.exists():
        console.print(f"[red]✗ Error: Image file not found: {image_path}[/red]")
        return False

    image = to_data_url(image_file.read_bytes())
    logger.info(f"✓ Loaded image: {image_file.name} ({len(image) / 1024:.1f} KB data URL)")

    app = ChefApp(GeminiGateway(), storage=FileStorage())
    app.set_view(ViewType.SCAN)
    scanner = app.scanner

    shown = 0

    def _on_change(session: ScanSession) -> None:
        nonlocal shown
        while shown < len(session.visible):
            console.print(f"  [green]✓[/green] {session.visible[shown]}")
            shown += 1

    scanner.subscribe(_on_change)
    scanner.update_preferences(meal_type=meal_type, diet=diet, difficulty=difficulty)
    scanner.set_calorie_level(calorie_level)

    try:
        with console.status(scanner.status_phrase):
            detected = await scanner.start_scan(image)
        if not detected:
            console.print("[red]✗ No ingredients detected[/red]")
            return False

        console.print("[bold]Ingredients found:[/bold]")
        await scanner.wait_for_state(ScanState.PREFERENCES)

        with console.status(scanner.status_phrase):
            await scanner.generate()
        if scanner.state != ScanState.RESULTS:
            console.print("[red]✗ Recipe generation failed[/red]")
            return False

        session = scanner.session.model_copy(deep=True)
        console.print()
        _print_recipes(session, debug=debug)

        if save_all:
            scanner.save_all()
            console.print(f"[green]✓ {len(app.favorites())} favorite(s) stored[/green]")
        return True
    finally:
        app.close()


def _parse_args(argv: list[str]) -> dict:
    options = {
        "image_path": None,
        "meal_type": "Lunch",
        "diet": "Everything",
        "difficulty": "Simple",
        "calorie_level": 1,
        "save_all": False,
        "debug": False,
    }
    value_flags = {
        "--image": ("image_path", None),
        "--meal-type": ("meal_type", MEAL_TYPES),
        "--diet": ("diet", DIETS),
        "--difficulty": ("difficulty", DIFFICULTIES),
    }

    idx = 0
    while idx < len(argv):
        flag = argv[idx]
        if flag == "--debug":
            options["debug"] = True
        elif flag == "--save-all":
            options["save_all"] = True
        elif flag in value_flags or flag == "--calories":
            idx += 1
            if idx >= len(argv):
                raise ValueError(f"{flag} flag requires a value")
            value = argv[idx]
            if flag == "--calories":
                if not value.isdigit() or int(value) >= len(CALORIE_RANGES):
                    raise ValueError(f"--calories must be one of 0, 1, 2 ({', '.join(CALORIE_RANGES)})")
                options["calorie_level"] = int(value)
            else:
                name, choices = value_flags[flag]
                if choices and value not in choices:
                    raise ValueError(f"{flag} must be one of: {', '.join(choices)}")
                options[name] = value
        else:
            raise ValueError(f"Unknown flag: {flag}")
        idx += 1

    if not options["image_path"]:
        raise ValueError("No image provided")
    return options


if __name__ == "__main__":
    try:
        options = _parse_args(sys.argv[1:])
    except ValueError as e:
        print(f"Error: {e}")
        print(USAGE)
        sys.exit(1)

    try:
        ok = asyncio.run(run_scan(**options))
    except KeyboardInterrupt:
        logger.info("\nScan interrupted by user.")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Scan failed: {e}", exc_info=True)
        sys.exit(1)
    sys.exit(0 if ok else 1)
