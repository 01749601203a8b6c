"""
Resource naming utilities for StatefulSets and their members.

Kubernetes naming constraints:
- Names: DNS-1123 label compliant (lowercase alphanumeric + '-', must start
  and end with an alphanumeric character)
- StatefulSet names are further limited because the pod controller appends
  "-<ordinal>" to pod names and a 10-character revision hash to the
  controller-revision-hash label (label values max 63 chars).
"""

# Longest StatefulSet name whose revision-hash label still fits in 63 chars
MAX_STATEFULSET_NAME_LENGTH = 52

# generateName bases leave room for the "-" separator and the 5-character
# random suffix the API server appends
MAX_GENERATE_NAME_BASE_LENGTH = MAX_STATEFULSET_NAME_LENGTH - 6


def mung_object_name(name: str, max_length: int = MAX_GENERATE_NAME_BASE_LENGTH) -> str:
    """
    Convert an arbitrary string into a DNS-1123 compliant object name base.

    Args:
        name: Raw name, e.g. "<cluster-name>-<role-id>"
        max_length: Maximum length of the result

    Returns:
        Sanitized name; "x" if nothing usable remains

    Examples:
        >>> mung_object_name("My_Cluster-Controller.Role")
        "my-cluster-controller-role"
    """
    safe_name = name.lower()
    safe_name = safe_name.replace('_', '-').replace(' ', '-').replace('.', '-')
    safe_name = ''.join(c for c in safe_name if c.isascii() and (c.isalnum() or c == '-'))
    while '--' in safe_name:
        safe_name = safe_name.replace('--', '-')
    safe_name = safe_name.strip('-')
    safe_name = safe_name[:max_length].rstrip('-')
    return safe_name or "x"
