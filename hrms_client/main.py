# hrms_client/main.py
import argparse
import asyncio
import getpass
import logging
import sys
import time
from datetime import datetime

import aiohttp

from hrms_client.api_client import ApiError, HrmsClient
from hrms_client.config import configure_logging, settings
from hrms_client.dashboard_view import render_dashboard, render_employee, render_employee_table
from hrms_client.session import SessionStore
from hrms_client.utils import save_failed_records

logger = logging.getLogger(__name__)

# Commands that need a stored login
AUTHENTICATED_COMMANDS = {"whoami", "list", "show", "search", "hire", "terminate", "dashboard"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='HRMS command line client')
    parser.add_argument('--server', '-s', type=str, default=settings.SERVER_URL,
                        help='Server URL')
    parser.add_argument('--session-file', type=str, default=settings.SESSION_FILE,
                        help='Where the login is stored')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Debug logging')

    commands = parser.add_subparsers(dest='command', required=True)

    login = commands.add_parser('login', help='Log in with email or employee ID')
    login.add_argument('identifier')
    login.add_argument('--password', '-p', default=None, help='Prompted for when omitted')

    commands.add_parser('logout', help='Forget the stored login')
    commands.add_parser('whoami', help='Show the logged-in employee')

    forgot = commands.add_parser('forgot-password', help='Email a password reset OTP')
    forgot.add_argument('email')

    verify = commands.add_parser('verify-otp', help='Check a password reset OTP')
    verify.add_argument('identifier')
    verify.add_argument('otp')

    reset = commands.add_parser('reset-password', help='Set a new password with a verified OTP')
    reset.add_argument('email')
    reset.add_argument('otp')
    reset.add_argument('--password', '-p', default=None, help='Prompted for when omitted')

    listing = commands.add_parser('list', help='List employees')
    listing.add_argument('--page', type=int, default=1)
    listing.add_argument('--limit', type=int, default=10)
    listing.add_argument('--department', default=None)
    listing.add_argument('--status', default=None)
    listing.add_argument('--role', default=None)

    show = commands.add_parser('show', help='Show one employee by record id or employee ID')
    show.add_argument('employee')

    search = commands.add_parser('search', help='Search active employees by name or code')
    search.add_argument('term')
    search.add_argument('--limit', type=int, default=10)

    hire = commands.add_parser('hire', help='Create employees from a CSV file')
    hire.add_argument('--file', '-f', type=str, default=settings.CSV_FILE_PATH,
                      help='CSV file with employee records')
    hire.add_argument('--workers', '-w', type=int, default=settings.MAX_WORKERS,
                      help='Concurrent requests')
    hire.add_argument('--output', '-o', type=str, default=None,
                      help='Failed records output file')

    terminate = commands.add_parser('terminate', help='Terminate an employee by record id')
    terminate.add_argument('employee_pk', type=int)

    commands.add_parser('dashboard', help='Show the dashboard for your role')

    return parser


async def run_command(args, client: HrmsClient) -> int:
    if args.command == 'login':
        password = args.password or getpass.getpass('Password: ')
        employee = await client.login(args.identifier, password)
        print(f"Logged in as {employee['employee_name']} ({employee['role']})")

    elif args.command == 'logout':
        await client.logout()
        print("Logged out")

    elif args.command == 'whoami':
        print(render_employee(await client.me()))

    elif args.command == 'forgot-password':
        print(await client.forgot_password(args.email))

    elif args.command == 'verify-otp':
        employee = await client.verify_otp(args.identifier, args.otp)
        print(f"OTP verified for {employee['employee_id']}")

    elif args.command == 'reset-password':
        password = args.password or getpass.getpass('New password: ')
        print(await client.reset_password(args.email, args.otp, password))

    elif args.command == 'list':
        employees, pagination = await client.list_employees(
            page=args.page,
            limit=args.limit,
            department=args.department,
            status=args.status,
            role=args.role,
        )
        print(render_employee_table(employees))
        print(f"Page {pagination['page']} of {pagination['pages']} ({pagination['total']} total)")

    elif args.command == 'show':
        if args.employee.isdigit():
            employee = await client.get_employee(int(args.employee))
        else:
            employee = await client.get_employee_by_code(args.employee)
        print(render_employee(employee))

    elif args.command == 'search':
        print(render_employee_table(await client.search(args.term, args.limit)))

    elif args.command == 'hire':
        client.max_workers = args.workers
        output = args.output or f"failed_hires_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"

        start_time = time.time()
        total, successful, failed = await client.hire_from_csv(args.file)
        elapsed_time = time.time() - start_time

        logger.info(f"Processing completed in {elapsed_time:.2f} seconds")
        print(f"Total: {total}, Success: {successful}, Failed: {len(failed)}")
        if failed:
            save_failed_records(failed, output)
            print(f"Failed records saved to {output}")
            return 1

    elif args.command == 'terminate':
        employee = await client.terminate_employee(args.employee_pk)
        print(f"{employee['employee_id']} terminated on {employee['dor']}")

    elif args.command == 'dashboard':
        print(render_dashboard(await client.dashboard()))

    return 0


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else None)

    store = SessionStore(args.session_file)
    if args.command in AUTHENTICATED_COMMANDS and not store.is_authenticated:
        print("Not logged in. Run 'login' first.", file=sys.stderr)
        return 1

    async with HrmsClient(server_url=args.server, session_store=store) as client:
        try:
            return await run_command(args, client)
        except ApiError as e:
            if e.status == 401 and args.command in AUTHENTICATED_COMMANDS:
                store.clear()
                print("Session expired. Run 'login' again.", file=sys.stderr)
            else:
                print(f"Error: {e.message}", file=sys.stderr)
            return 1
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Cannot reach {args.server}: {str(e)}")
            return 1
        except FileNotFoundError as e:
            print(f"Error: {str(e)}", file=sys.stderr)
            return 1


def cli():
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Process interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    cli()
