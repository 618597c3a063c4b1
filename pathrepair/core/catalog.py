from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

EnvLookup = Callable[[str], Optional[str]]

CATEGORY_ORDER = (
    "critical_system",
    "common_system",
    "applications",
    "java_variants",
    "user_specific",
)

DEFAULT_CATALOG: Dict[str, List[str]] = {
    "critical_system": [
        r"{SystemRoot}\System32",
        r"{SystemRoot}",
        r"{SystemRoot}\System32\Wbem",
        r"{SystemRoot}\System32\WindowsPowerShell\v1.0",
        r"{SystemRoot}\System32\OpenSSH",
    ],
    "common_system": [
        r"{ProgramFiles}\PowerShell\7",
        r"{ProgramFiles}\Git\cmd",
        r"{ProgramFiles}\dotnet",
        r"{ProgramFiles}\nodejs",
        r"{ProgramData}\chocolatey\bin",
        r"{ProgramFiles}\Docker\Docker\resources\bin",
        r"{ProgramFiles(x86)}\Windows Kits\10\Windows Performance Toolkit",
        r"{ProgramFiles}\Microsoft SQL Server\Client SDK\ODBC\170\Tools\Binn",
    ],
    "applications": [
        r"{ProgramFiles}\7-Zip",
        r"{ProgramFiles}\Microsoft VS Code\bin",
        r"{ProgramFiles}\CMake\bin",
        r"{ProgramFiles}\Go\bin",
        r"{ProgramFiles}\Amazon\AWSCLIV2",
        r"{ProgramFiles}\Microsoft SDKs\Azure\CLI2\wbin",
        r"{ProgramFiles}\Python3*",
        r"{ProgramFiles}\Python3*\Scripts",
        r"{ProgramFiles}\PostgreSQL\*\bin",
        r"{ProgramFiles}\MySQL\MySQL Server *\bin",
        r"{ProgramFiles}\Vim\vim*",
        r"{ProgramFiles(x86)}\GnuPG\bin",
    ],
    "java_variants": [
        r"{ProgramFiles(x86)}\Common Files\Oracle\Java\javapath",
        r"{ProgramFiles}\Common Files\Oracle\Java\javapath",
        r"{ProgramFiles}\Java\jdk*\bin",
        r"{ProgramFiles}\Java\jre*\bin",
        r"{ProgramFiles}\Eclipse Adoptium\jdk*\bin",
        r"{ProgramFiles}\Microsoft\jdk-*\bin",
        r"{ProgramFiles}\Amazon Corretto\jdk*\bin",
        r"{ProgramFiles}\Zulu\zulu*\bin",
        r"{USERPROFILE}\.jdks\*\bin",
    ],
    "user_specific": [
        r"{LOCALAPPDATA}\Microsoft\WindowsApps",
        r"{USERPROFILE}\.dotnet\tools",
        r"{APPDATA}\npm",
        r"{USERPROFILE}\.cargo\bin",
        r"{USERPROFILE}\go\bin",
        r"{USERPROFILE}\scoop\shims",
        r"{LOCALAPPDATA}\Programs\Python\Python3*",
        r"{LOCALAPPDATA}\Programs\Python\Python3*\Scripts",
        r"{LOCALAPPDATA}\Programs\Microsoft VS Code\bin",
    ],
}

DEFAULT_SEARCH_ROOTS: List[str] = [
    r"{ProgramFiles}",
    r"{ProgramFiles(x86)}",
    r"{ProgramData}",
    r"{LOCALAPPDATA}\Programs",
    "{SystemDrive}\\",
]

DEFAULT_EXECUTABLES: List[str] = [
    "git.exe",
    "node.exe",
    "npm.cmd",
    "yarn.cmd",
    "pnpm.cmd",
    "deno.exe",
    "bun.exe",
    "python.exe",
    "pip.exe",
    "conda.exe",
    "java.exe",
    "javac.exe",
    "mvn.cmd",
    "gradle.bat",
    "go.exe",
    "cargo.exe",
    "rustc.exe",
    "dotnet.exe",
    "code.cmd",
    "docker.exe",
    "kubectl.exe",
    "helm.exe",
    "terraform.exe",
    "aws.exe",
    "az.cmd",
    "gcloud.cmd",
    "cmake.exe",
    "ninja.exe",
    "make.exe",
    "gcc.exe",
    "g++.exe",
    "clang.exe",
    "perl.exe",
    "ruby.exe",
    "gem.cmd",
    "php.exe",
    "composer.bat",
    "7z.exe",
    "curl.exe",
    "wget.exe",
    "ffmpeg.exe",
    "sqlcmd.exe",
    "psql.exe",
    "mysql.exe",
    "mongosh.exe",
    "redis-cli.exe",
    "pwsh.exe",
    "ssh.exe",
    "gpg.exe",
    "vim.exe",
    "nvim.exe",
    "choco.exe",
]

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


def default_env_lookup(name: str) -> Optional[str]:
    return os.environ.get(name) or None


def resolve_home(env_lookup: EnvLookup) -> str:
    return env_lookup("USERPROFILE") or str(Path.home())


def resolve_template(template: str, env_lookup: EnvLookup) -> Optional[str]:
    """Substitute ``{Name}`` placeholders, or return None if any is unset."""
    unresolved: List[str] = []

    def _replace(match: "re.Match[str]") -> str:
        value = env_lookup(match.group(1))
        if not value:
            unresolved.append(match.group(1))
            return match.group(0)
        return value

    resolved = _PLACEHOLDER.sub(_replace, template)
    if unresolved:
        return None
    return resolved


def resolve_templates(
    templates: Iterable[str],
    env_lookup: EnvLookup,
    logger: Optional[logging.Logger] = None,
) -> List[str]:
    resolved: List[str] = []
    for template in templates:
        value = resolve_template(template, env_lookup)
        if value is None:
            if logger is not None:
                logger.debug("Skipping pattern with unresolved placeholder: %s", template)
            continue
        resolved.append(value)
    return resolved


def resolve_catalog(
    catalog: Dict[str, List[str]],
    env_lookup: EnvLookup,
    logger: Optional[logging.Logger] = None,
) -> Dict[str, List[str]]:
    return {
        category: resolve_templates(catalog.get(category, []), env_lookup, logger)
        for category in CATEGORY_ORDER
    }
