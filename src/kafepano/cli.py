#!/usr/bin/env python3
"""
KafePano CLI - command-line interface for the display and admin surfaces.

This module provides the display entry point, configuration validation and
the admin commands for editing settings and content.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .admin import ERROR, ROW_BUILDERS, SUCCESS, AdminController, Notification
from .assets import AssetUploader
from .auth import AuthService
from .config.loader import ConfigLoader, collect_warnings
from .controller import create_store
from .models import WIDGET_NAMES
from .utils.errors import ConfigurationError, Result
from .widgets.menu import FOOD_EMOJIS
from .widgets.weather import available_cities

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Path.home() / ".kafepano" / "config.yaml"

COLLECTION_WIDGETS = ("calendar", "gallery", "announcement", "menu")

NOTIFICATION_ICONS = {SUCCESS: "✅", ERROR: "❌"}


def print_notification(notification: Notification) -> None:
    icon = NOTIFICATION_ICONS.get(notification.level, "ℹ️")
    print(f"{icon} {notification.message}")


class KafePanoCLI:
    """Main CLI handler for KafePano commands."""

    def __init__(self) -> None:
        self.config_loader = ConfigLoader()

    def run_display(self, config_path: str, log_level: Optional[str] = None) -> int:
        """Run the display surface until interrupted."""
        from .main import main as display_main

        argv = [config_path]
        if log_level:
            argv += ["--log-level", log_level]

        try:
            display_main(argv)
            return 0
        except KeyboardInterrupt:
            logger.info("Display stopped by user")
            return 0
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 1

    def validate_config(self, config_path: str) -> int:
        """
        Validate a configuration file.

        Args:
            config_path: Path to the YAML file
        """
        print(f"Validating {config_path}...")

        try:
            config = self.config_loader.load(config_path)
        except FileNotFoundError as e:
            print(f"\n❌ {e}")
            return 1
        except ValueError as e:
            print(f"\n❌ Validation FAILED:\n  ERROR: {e}")
            return 1
        except ConfigurationError as e:
            print(f"\n❌ Validation FAILED:\n  ERROR: {e}")
            return 1

        print("\n✅ Configuration is valid")

        warnings = collect_warnings(config)
        if warnings:
            print("\n⚠️  Warnings:")
            for warning in warnings:
                print(f"  WARNING: {warning}")
        else:
            print("\n✨ Configuration looks good!")

        return 0

    def open_admin(self, config_path: str, email: Optional[str], password: Optional[str]) -> Optional[AdminController]:
        """Load the config, sign in and start the admin controller."""
        try:
            config = self.config_loader.load(config_path)
            store = create_store(config)
        except (FileNotFoundError, ValueError, PermissionError, ConfigurationError) as e:
            print(f"❌ {e}")
            return None

        email = email or os.environ.get("KAFEPANO_EMAIL")
        password = password or os.environ.get("KAFEPANO_PASSWORD")
        if not email or not password:
            print("❌ Email and password are required (--email/--password or KAFEPANO_EMAIL/KAFEPANO_PASSWORD)")
            return None

        auth = AuthService(config["auth"]["api_key"])
        result = auth.sign_in(email, password)
        if not result:
            print(f"❌ {result.error}")
            return None

        admin = AdminController(
            store,
            auth,
            uploader=AssetUploader.from_config(config),
            locale=config["display"]["locale"],
            on_login_required=lambda: print("❌ Please sign in"),
            on_notify=print_notification,
        )
        if not admin.start():
            return None
        return admin

    def show_settings(self, admin: AdminController) -> int:
        print(yaml.safe_dump(admin.settings.to_dict(), allow_unicode=True, sort_keys=False))
        return 0

    def set_setting(self, admin: AdminController, field: str, value: str) -> int:
        setters = {
            "cafe_name": admin.set_cafe_name,
            "theme": admin.set_theme,
            "primary_color": admin.set_primary_color,
            "weather_city": admin.set_weather_city,
            "gallery_interval": admin.set_gallery_interval,
            "clock_format": admin.set_clock_format,
        }
        return _exit_code(setters[field](value))

    def list_records(self, admin: AdminController, widget: str) -> int:
        records = admin.lists[widget]
        if not records:
            print(f"No {widget} records.")
            return 0

        for record in records:
            row = ROW_BUILDERS[widget](record)
            line = f"{row['id']}  {row.get('icon') or ' '} {row['title']}"
            if row.get("subtitle"):
                line += f"  ({row['subtitle']})"
            print(line)
        return 0

    def upload(self, admin: AdminController, path: str, logo: bool, caption: Optional[str] = None) -> int:
        file_path = Path(path).expanduser()
        try:
            data = file_path.read_bytes()
        except OSError as e:
            print(f"❌ Dosya okunamadı: {e}")
            return 1

        if logo:
            return _exit_code(admin.upload_logo(data, file_path.name))

        result = admin.upload_photo(data, file_path.name)
        if not result:
            return 1
        return _exit_code(admin.add_photo(result.value, caption))

    def remove_record(self, admin: AdminController, widget: str, record_id: str) -> int:
        removers = {
            "calendar": admin.delete_event,
            "gallery": admin.delete_photo,
            "announcement": admin.delete_announcement,
            "menu": admin.delete_menu_item,
        }
        return _exit_code(removers[widget](record_id))


def _exit_code(result: Result) -> int:
    return 0 if result else 1


def _record_data(args: argparse.Namespace, fields: tuple) -> Dict[str, Any]:
    return {field: getattr(args, field) for field in fields if getattr(args, field) is not None}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="kafepano",
        description="KafePano - café digital signage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  kafepano display ~/.kafepano/config.yaml        # Run the display
  kafepano validate ~/.kafepano/config.yaml       # Validate a configuration
  kafepano settings show                          # Print the settings document
  kafepano settings set theme dark                # Change one setting
  kafepano settings disable menu                  # Turn a widget off
  kafepano list calendar                          # List calendar events
  kafepano add-event --title Quiz --date 2026-10-19 --time 19:30
  kafepano upload-photo latte.jpg --caption "Yeni menü"
  kafepano remove gallery -- -NxYz...             # Delete a photo
""",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    display_parser = subparsers.add_parser("display", help="Run the display surface")
    display_parser.add_argument("config", help="Path to configuration file")
    display_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level",
    )

    validate_parser = subparsers.add_parser("validate", help="Validate a configuration")
    validate_parser.add_argument("config", help="Path to configuration file")

    # Options shared by every admin command
    admin_parent = argparse.ArgumentParser(add_help=False)
    admin_parent.add_argument(
        "-c", "--config",
        default=os.environ.get("KAFEPANO_CONFIG", str(DEFAULT_CONFIG)),
        help=f"Path to configuration file (default: $KAFEPANO_CONFIG or {DEFAULT_CONFIG})",
    )
    admin_parent.add_argument("--email", help="Admin email (default: $KAFEPANO_EMAIL)")
    admin_parent.add_argument("--password", help="Admin password (default: $KAFEPANO_PASSWORD)")

    settings_parser = subparsers.add_parser("settings", help="Show or change settings")
    settings_subparsers = settings_parser.add_subparsers(dest="settings_command")
    settings_subparsers.add_parser("show", parents=[admin_parent], help="Print the settings")
    set_parser = settings_subparsers.add_parser("set", parents=[admin_parent], help="Change one setting")
    set_parser.add_argument(
        "field",
        choices=["cafe_name", "theme", "primary_color", "weather_city", "gallery_interval", "clock_format"],
    )
    set_parser.add_argument(
        "value",
        help=f"New value (weather_city: {', '.join(available_cities())}; clock_format: 24h or 12h)",
    )
    for name, help_text in (("enable", "Turn a widget on"), ("disable", "Turn a widget off")):
        toggle_parser = settings_subparsers.add_parser(name, parents=[admin_parent], help=help_text)
        toggle_parser.add_argument("widget", choices=WIDGET_NAMES)
    settings_subparsers.add_parser("remove-logo", parents=[admin_parent], help="Remove the logo")

    list_parser = subparsers.add_parser("list", parents=[admin_parent], help="List a widget's records")
    list_parser.add_argument("widget", choices=COLLECTION_WIDGETS)

    event_parser = subparsers.add_parser("add-event", parents=[admin_parent], help="Add a calendar event")
    event_parser.add_argument("--title", required=True)
    event_parser.add_argument("--date", required=True, help="YYYY-MM-DD")
    event_parser.add_argument("--time", required=True, help="HH:MM (24h)")
    event_parser.add_argument("--description")
    event_parser.add_argument("--icon")

    announcement_parser = subparsers.add_parser(
        "add-announcement", parents=[admin_parent], help="Add an announcement"
    )
    announcement_parser.add_argument("text")
    announcement_parser.add_argument("--priority", choices=["normal", "high"], default="normal")

    menu_parser = subparsers.add_parser("add-menu-item", parents=[admin_parent], help="Add a menu item")
    menu_parser.add_argument("--name", required=True)
    menu_parser.add_argument("--price", required=True)
    menu_parser.add_argument("--description")
    menu_parser.add_argument("--icon", help=f"Emoji icon, e.g. {' '.join(FOOD_EMOJIS[:7])}")

    photo_parser = subparsers.add_parser(
        "upload-photo", parents=[admin_parent], help="Upload a photo and add it to the gallery"
    )
    photo_parser.add_argument("path")
    photo_parser.add_argument("--caption")

    logo_parser = subparsers.add_parser("upload-logo", parents=[admin_parent], help="Upload the cafe logo")
    logo_parser.add_argument("path")

    remove_parser = subparsers.add_parser("remove", parents=[admin_parent], help="Delete a record")
    remove_parser.add_argument("widget", choices=COLLECTION_WIDGETS)
    remove_parser.add_argument("id")

    return parser


def main(argv=None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    cli = KafePanoCLI()

    if args.command == "display":
        return cli.run_display(args.config, args.log_level)

    elif args.command == "validate":
        return cli.validate_config(args.config)

    elif args.command is None or (args.command == "settings" and not args.settings_command):
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.WARNING, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    admin = cli.open_admin(args.config, args.email, args.password)
    if admin is None:
        return 1

    if args.command == "settings":
        if args.settings_command == "show":
            return cli.show_settings(admin)
        elif args.settings_command == "set":
            return cli.set_setting(admin, args.field, args.value)
        elif args.settings_command in ("enable", "disable"):
            return _exit_code(admin.toggle_widget(args.widget, args.settings_command == "enable"))
        elif args.settings_command == "remove-logo":
            return _exit_code(admin.remove_logo())

    elif args.command == "list":
        return cli.list_records(admin, args.widget)

    elif args.command == "add-event":
        return _exit_code(admin.save_event(_record_data(args, ("title", "date", "time", "description", "icon"))))

    elif args.command == "add-announcement":
        return _exit_code(admin.save_announcement(_record_data(args, ("text", "priority"))))

    elif args.command == "add-menu-item":
        return _exit_code(admin.save_menu_item(_record_data(args, ("name", "price", "description", "icon"))))

    elif args.command == "upload-photo":
        return cli.upload(admin, args.path, logo=False, caption=args.caption)

    elif args.command == "upload-logo":
        return cli.upload(admin, args.path, logo=True)

    elif args.command == "remove":
        return cli.remove_record(admin, args.widget, args.id)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
