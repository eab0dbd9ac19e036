"""Pick one RAM role out of the decoded assertion."""

import logging

from saml2alibabacloud.errors import NoRolesAvailable, PromptCancelled, SelectionFailed

log = logging.getLogger(__name__)


def role_label(account, role):
    return f"{account.name} / {role.name}"


def roles_by_label(accounts):
    """Return {label: RamRole, ...}.

    A label already taken (two roles with the same name in one account) is
    never overwritten: the later role is labelled with its full ARN instead.
    """
    roles = {}
    for account in accounts:
        for role in account.roles:
            label = role_label(account, role)
            if label in roles:
                label = f"{account.name} / {role.role_arn}"
                log.debug("Role label clash, using %s", label)
            roles[label] = role
    return roles


def sorted_role_labels(accounts):
    """Return the ``"<account> / <role>"`` labels in plain string order."""
    return sorted(roles_by_label(accounts))


def select_role(accounts, prompter, preferred=None):
    """Return the RamRole to assume.

    *preferred* is a role ARN (``role_arn`` in the config or ``--role``); when
    the assertion carries it, it is used without prompting. A single role is
    also used without prompting. Otherwise the user chooses among the sorted
    labels, the first one being the default.
    """
    roles = roles_by_label(accounts)
    if not roles:
        raise NoRolesAvailable()

    if preferred:
        for role in roles.values():
            if role.role_arn == preferred:
                return role
        log.warning("Role %s is not in the SAML assertion", preferred)

    labels = sorted(roles)
    if len(labels) == 1:
        return roles[labels[0]]

    try:
        selected = prompter.choose_with_default("Please choose the role", labels[0], labels)
    except PromptCancelled as exc:
        raise SelectionFailed("Role selection failed") from exc
    if selected not in roles:
        raise SelectionFailed(f"Role selection failed: unknown role {selected!r}")
    return roles[selected]
