import functools
import getpass
import typing as t
from pathlib import Path

import pydantic as p
import yaml
from ansible.parsing.vault import VaultLib, VaultSecret
from keyctl import Key as keyctl
from keyctl import KeyNotExistError
from pydantic_settings import PydanticBaseSettingsSource
from pydantic_settings.sources import SettingsError

import gradeflow.lib.util as util
from gradeflow.model import DeploymentEnvironment

# fields given to the settings object directly rather than read from a source
BootKeys = frozenset({"env", "root", "override"})


class CurrentState(t.TypedDict, total=False):
    root: t.Required[p.AnyUrl]
    env: t.Required[DeploymentEnvironment]


class SettingsCurrentState(CurrentState, total=False):
    override: t.Required[tuple[str, ...]]


def environment_paths(root: p.AnyUrl, env: DeploymentEnvironment) -> list[Path]:
    """Directories searched for configuration, least specific first

    `local` reads the root alone; every other environment layers
    `env.d/<env>/` over it.
    """
    assert root.scheme == "file" and root.path is not None, "root is not a legible location of YAML files"
    paths = [Path(root.path)]
    if env is not DeploymentEnvironment.Local:
        paths.append(Path(root.path) / "env.d" / env.value)
    return paths


class SettingsSource(PydanticBaseSettingsSource):
    def __call__(self) -> dict[str, t.Any]:
        data: dict[str, t.Any] = {}

        for field_name, field in self.settings_cls.model_fields.items():
            try:
                field_value, field_key, value_is_complex = self.get_field_value(field, field_name)
                field_value = self.prepare_field_value(field_name, field, field_value, value_is_complex)
            except KeyError:
                continue
            except (ValueError, yaml.YAMLError) as e:
                raise SettingsError(f"error parsing value for field {field_name!r} from source {self!r}") from e

            data[field_key] = field_value
        return data


class OverrideSettingsSource(SettingsSource):
    """Applies `-o dotted.key=value` overrides; values are parsed as YAML

    Must precede the YAML source: earlier sources take precedence and nested
    sections are merged key by key.
    """

    @functools.cached_property
    def parsed_options(self) -> dict[str, t.Any]:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        od: dict[str, t.Any] = {}
        for o in current_state["override"]:
            k, v = [s.strip() for s in o.split("=", 1)]
            nested: t.Any = yaml.safe_load(v)
            for part in reversed(k.split(".")):
                nested = {part: nested}
            od = util.deep_update(od, nested)
        return od

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        if field_name in BootKeys or field_name not in self.parsed_options:
            raise KeyError(field_name)
        value = self.parsed_options[field_name]
        return value, field_name, isinstance(value, dict)

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return value


class YAMLCascadingSettingsSource(SettingsSource):
    """Reads `<field>.yaml`; the most specific environment's file wins outright"""

    @functools.cached_property
    def load_paths(self) -> list[Path]:
        current_state = t.cast(SettingsCurrentState, self.current_state)
        return environment_paths(current_state["root"], current_state["env"])

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        found = [fn for fn in (path / f"{field_name}.yaml" for path in self.load_paths) if fn.exists()]
        if not found:
            raise KeyError(field_name)
        return found[-1], field_name, True

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return yaml.safe_load(t.cast(Path, value).read_text(encoding="utf8"))


class AnsibleVaultSecretsSource(SettingsSource):
    """Reads `secrets.vault.yaml` from the most specific environment directory

    The vault password is cached in the kernel keyring once it has unlocked
    the vault, so operators are prompted at most once per login session.
    """

    filename: t.ClassVar[str] = "secrets.vault.yaml"

    @functools.cached_property
    def load_path(self) -> Path:
        current_state = t.cast(CurrentState, self.current_state)
        return environment_paths(current_state["root"], current_state["env"])[-1]

    @functools.cached_property
    def secrets(self) -> dict[str, t.Any]:
        current_state = t.cast(CurrentState, self.current_state)
        vp = self.load_path / self.filename
        if not vp.exists():
            return {}

        key_name = f"{current_state['env'].value}:{self.filename}"
        try:
            key = keyctl.search(key_name).data
            store_key = False
        except KeyNotExistError:
            key = getpass.getpass(f"provide vault key ({key_name}): ")
            store_key = True

        vault = VaultLib(secrets=[(None, VaultSecret(key.encode()))])
        content = vault.decrypt(vp.read_text())
        if store_key:
            keyctl.add(key_name, key)
        return yaml.safe_load(content) or {}

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        # checked first: reading the vault needs root and env from current_state
        if field_name in BootKeys or field_name not in self.secrets:
            raise KeyError(field_name)
        val = self.secrets[field_name]
        return val, field_name, isinstance(val, dict)

    def prepare_field_value(
        self, field_name: str, field: p.fields.FieldInfo, value: t.Any, value_is_complex: bool
    ) -> t.Any:
        return value
