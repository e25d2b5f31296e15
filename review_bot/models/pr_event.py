"""Pull request and repository data models."""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


def _sub_object(parent: Dict[str, Any], field: str) -> Dict[str, Any]:
    """
    Return a nested payload object, or an empty dict when it is absent.

    Raises:
        ValueError: If the field holds something other than a JSON object
    """
    value = parent.get(field)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"Expected '{field}' to be an object, got {type(value).__name__}")
    return value


class RepositoryRef(BaseModel):
    """Repository identity taken from a webhook ``repository`` object."""

    model_config = ConfigDict(frozen=True)

    owner_login: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner_login}/{self.name}"

    @classmethod
    def from_payload(cls, repository: Any) -> "RepositoryRef":
        """
        Build from the ``repository`` sub-object of a webhook payload.

        Raises:
            ValueError: If the object is malformed; pydantic.ValidationError
                (a ValueError) if owner login or name is missing
        """
        if not isinstance(repository, dict):
            raise ValueError(f"Expected 'repository' to be an object, got {type(repository).__name__}")
        owner = _sub_object(repository, "owner")
        return cls(owner_login=owner.get("login"), name=repository.get("name"))


class PullRequestContext(BaseModel):
    """Pull request metadata needed by the review workflow."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    head_ref: str
    head_sha: str
    base_sha: str
    owner_login: str
    repo_name: str

    @property
    def repository(self) -> RepositoryRef:
        return RepositoryRef(owner_login=self.owner_login, name=self.repo_name)

    @classmethod
    def from_payload(
        cls,
        pull_request: Any,
        repository: Any,
    ) -> "PullRequestContext":
        """
        Build from the ``pull_request`` and ``repository`` sub-objects.

        Raises:
            ValueError: If a sub-object is not a JSON object or a required
                field is missing (pydantic.ValidationError)
        """
        if not isinstance(pull_request, dict):
            raise ValueError(f"Expected 'pull_request' to be an object, got {type(pull_request).__name__}")
        head = _sub_object(pull_request, "head")
        base = _sub_object(pull_request, "base")
        repo = RepositoryRef.from_payload(repository)
        return cls(
            number=pull_request.get("number"),
            title=pull_request.get("title") or "",
            head_ref=head.get("ref"),
            head_sha=head.get("sha"),
            base_sha=base.get("sha"),
            owner_login=repo.owner_login,
            repo_name=repo.name,
        )
