"""
saml2alibabacloud: log in to Alibaba Cloud through a SAML IdP.

Authenticates to the configured Identity Provider (including MFA), captures
the SAML assertion, presents the RAM roles it carries, assumes the selected
role via STS and writes temporary credentials to an aliyun CLI profile.
"""

import argparse
import logging
import os
import sys

from saml2alibabacloud import __version__
from saml2alibabacloud.aliyun import ALIYUN_CONFIG_PATH, write_aliyun_profile
from saml2alibabacloud.config import DEFAULT_BROWSER_TYPE, DEFAULT_CONFIG_PATH, ConfigManager
from saml2alibabacloud.creds import CredentialStore, LoginDetails
from saml2alibabacloud.errors import NoRolesAvailable, Saml2AlibabaCloudError
from saml2alibabacloud.prompter import ConsolePrompter
from saml2alibabacloud.providers.browser import BROWSER_TYPES
from saml2alibabacloud.registry import MFAS_BY_PROVIDER, new_saml_client
from saml2alibabacloud.roles import roles_by_label, select_role
from saml2alibabacloud.saml import decode_assertion, parse_session_duration
from saml2alibabacloud.sts import assume_role_with_saml

log = logging.getLogger(__name__)

DEFAULT_IDP_ACCOUNT = "default"
PASSWORD_ENV = "SAML2ALIBABACLOUD_PASSWORD"

# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


def prompt_for_configuration_details(idp_account, prompter, provider_list=MFAS_BY_PROVIDER):
    """Ask for the provider, MFA, profile, URL, username and provider fields."""
    idp_account.provider = prompter.choose_with_default(
        "Please choose a provider:", idp_account.provider, provider_list.names()
    )

    mfas = provider_list.mfas(idp_account.provider)
    # only prompt for MFA if there is more than one option
    if len(mfas) > 1:
        idp_account.mfa = prompter.choose_with_default("Please choose an MFA", idp_account.mfa, mfas)
    else:
        idp_account.mfa = mfas[0]

    idp_account.profile = prompter.string("AlibabaCloud CLI Profile", idp_account.profile)
    idp_account.url = prompter.string("URL", idp_account.url)
    idp_account.username = prompter.string("Username", idp_account.username)

    if idp_account.provider == "OneLogin":
        idp_account.app_id = prompter.string("App ID", idp_account.app_id)
        idp_account.subdomain = prompter.string("Subdomain", idp_account.subdomain)
    elif idp_account.provider == "F5APM":
        idp_account.resource_id = prompter.string("Resource ID", idp_account.resource_id)
    elif idp_account.provider == "AzureAD":
        idp_account.app_id = prompter.string("App ID", idp_account.app_id)
    elif idp_account.provider == "Shell":
        idp_account.shell_command = prompter.string("Shell command", idp_account.shell_command)
    elif idp_account.provider == "Browser":
        idp_account.browser_type = prompter.choose_with_default(
            "Please choose a browser", idp_account.browser_type or DEFAULT_BROWSER_TYPE, sorted(BROWSER_TYPES)
        )


def prompt_for_login_details(login_details, prompter):
    """Ask for the username, password and OneLogin client credentials."""
    if login_details.provider == "Browser":
        return
    print("To use saved password just hit enter.")

    login_details.username = prompter.string("Username", login_details.username)
    entered = prompter.password("Password")
    if entered:
        login_details.password = entered

    if login_details.provider == "OneLogin":
        if not login_details.client_id:
            login_details.client_id = prompter.password("Client ID")
        if not login_details.client_secret:
            login_details.client_secret = prompter.password("Client Secret")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def build_idp_account(args):
    """Load the named IdP account and apply command line overrides."""
    account = ConfigManager(args.config).load_idp_account(args.idp_account)
    overrides = {
        "provider": args.provider,
        "url": args.url,
        "username": args.username,
        "mfa": args.mfa,
        "profile": args.profile,
        "region": args.region,
        "session_duration": args.session_duration,
    }
    for attr, value in overrides.items():
        if value is not None:
            setattr(account, attr, value)
    if args.skip_verify:
        account.skip_verify = True
    return account


def resolve_login_details(account, args, prompter, store):
    login_details = LoginDetails(
        url=account.url,
        username=account.username,
        provider=account.provider,
        mfa_token=args.mfa_token or "",
        password=os.environ.get(PASSWORD_ENV, ""),
    )
    if not args.disable_keychain:
        store.load_login_details(login_details)
    if not args.skip_prompt:
        prompt_for_login_details(login_details, prompter)
    return login_details


def authenticate(args, prompter, store):
    """Run the IdP flow and return (idp_account, saml_assertion)."""
    account = build_idp_account(args)
    account.validate()
    # fails on an unknown provider or MFA before anything touches the network
    client = new_saml_client(account, prompter)

    login_details = resolve_login_details(account, args, prompter, store)
    print(f"\nAuthenticating as {login_details.username or '<browser>'} ...")
    saml_assertion = client.authenticate(login_details)

    if not args.disable_keychain and account.provider not in ("Browser", "Shell"):
        store.save_login_details(login_details)
    return account, saml_assertion


def cmd_configure(args, prompter, store):
    manager = ConfigManager(args.config)
    account = build_idp_account(args)
    if args.app_id is not None:
        account.app_id = args.app_id
    if args.subdomain is not None:
        account.subdomain = args.subdomain
    if args.resource_id is not None:
        account.resource_id = args.resource_id
    if args.shell_command is not None:
        account.shell_command = args.shell_command
    if args.role is not None:
        account.role_arn = args.role
    if args.browser_type is not None:
        account.browser_type = args.browser_type
    if args.browser_executable_path is not None:
        account.browser_executable_path = args.browser_executable_path
    for flag in ("browser_autofill", "download_browser_driver", "headless"):
        if getattr(args, flag):
            setattr(account, flag, True)

    if not args.skip_prompt:
        prompt_for_configuration_details(account, prompter)

    manager.save_idp_account(args.idp_account, account)
    print(f"\nConfiguration saved for IDP account: {args.idp_account}")
    print(account)


def cmd_login(args, prompter, store):
    account, saml_assertion = authenticate(args, prompter, store)
    print("Authentication successful.")

    accounts = decode_assertion(saml_assertion)
    role = select_role(accounts, prompter, args.role or account.role_arn or None)
    print(f"\nAssuming role: {role.role_arn}")

    duration = args.session_duration
    if duration is None:
        duration = parse_session_duration(saml_assertion, account.session_duration)
    credentials = assume_role_with_saml(role, saml_assertion, duration, account.region or None)

    write_aliyun_profile(credentials, account.profile, account.region or None, args.aliyun_config)
    print(f"\nCredentials written to profile '{account.profile}' ({args.aliyun_config})")
    print(f"Expires: {credentials.get('Expiration', 'unknown')}")
    print()
    print(f"  aliyun --profile {account.profile} ecs DescribeRegions")


def cmd_list_roles(args, prompter, store):
    _, saml_assertion = authenticate(args, prompter, store)
    accounts = decode_assertion(saml_assertion)
    roles = roles_by_label(accounts)
    if not roles:
        raise NoRolesAvailable()

    print()
    for label in sorted(roles):
        print(f"  {label}")
        print(f"       {roles[label].role_arn}")


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _add_common_arguments(parser):
    parser.add_argument("-a", "--idp-account", default=DEFAULT_IDP_ACCOUNT,
                        help="Name of the IdP account section (default: default)")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH,
                        help="Path to config file (default: ~/.saml2alibabacloud)")
    parser.add_argument("--provider", help="IdP provider name (overrides config)")
    parser.add_argument("--url", help="IdP login URL (overrides config)")
    parser.add_argument("--username", help="IdP username (overrides config)")
    parser.add_argument("--mfa", help="MFA type (overrides config)")
    parser.add_argument("--profile", help="aliyun CLI profile name (default: saml)")
    parser.add_argument("--region", help="Alibaba Cloud region, e.g. cn-hangzhou")
    parser.add_argument("--session-duration", type=int,
                        help="Session duration in seconds (default: from SAML / 3600)")
    parser.add_argument("--role", help="RAM role ARN to assume (skips role prompt)")
    parser.add_argument("--skip-prompt", action="store_true",
                        help="Do not prompt, use configured values only")
    parser.add_argument("--skip-verify", action="store_true",
                        help="Skip TLS certificate verification")


def _build_parser():
    parser = argparse.ArgumentParser(
        prog="saml2alibabacloud",
        description="Log in to Alibaba Cloud through a SAML Identity Provider.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  saml2alibabacloud configure                      Set up the default IdP account
  saml2alibabacloud login                          Log in and write the 'saml' profile
  saml2alibabacloud login -a work --profile dev    Use IdP account 'work'
  saml2alibabacloud list-roles                     Show the roles you may assume
""",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--debug", action="store_true",
                        help="Print debug information (URLs, redirects, HTTP status)")
    sub = parser.add_subparsers(dest="command", required=True)

    configure = sub.add_parser("configure", help="Configure a new IdP account")
    _add_common_arguments(configure)
    configure.add_argument("--app-id", help="OneLogin / AzureAD app ID")
    configure.add_argument("--subdomain", help="OneLogin subdomain")
    configure.add_argument("--resource-id", help="F5APM resource ID")
    configure.add_argument("--shell-command", help="Command printing the assertion (Shell provider)")
    configure.add_argument("--browser-type", help="chromium, chrome, msedge, firefox or webkit (Browser provider)")
    configure.add_argument("--browser-executable-path", help="Browser binary to launch (Browser provider)")
    configure.add_argument("--browser-autofill", action="store_true",
                           help="Fill username and password on the login page (Browser provider)")
    configure.add_argument("--download-browser-driver", action="store_true",
                           help="Run playwright install before logging in (Browser provider)")
    configure.add_argument("--headless", action="store_true", help="Run the browser without a window")
    configure.set_defaults(func=cmd_configure)

    for name, func, help_text in (
        ("login", cmd_login, "Log in and write temporary credentials"),
        ("list-roles", cmd_list_roles, "List the RAM roles available to you"),
    ):
        command = sub.add_parser(name, help=help_text)
        _add_common_arguments(command)
        command.add_argument("--mfa-token", help="One-time MFA code to use for the first attempt")
        command.add_argument("--disable-keychain", action="store_true",
                             help="Do not read or store secrets in the OS keychain")
        command.add_argument("--aliyun-config", default=ALIYUN_CONFIG_PATH,
                             help="Path to the aliyun CLI config (default: ~/.aliyun/config.json)")
        command.set_defaults(func=func)

    return parser


def _setup_logging(args):
    level = logging.WARNING
    if args.verbose:
        level = logging.INFO
    if args.debug:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def main(argv=None, prompter=None, store=None):
    args = _build_parser().parse_args(argv)
    _setup_logging(args)

    try:
        args.func(args, prompter or ConsolePrompter(), store or CredentialStore())
    except Saml2AlibabaCloudError as exc:
        print(f"Error: {exc}")
        log.debug("Command %s failed", args.command, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
