"""Parameters for creating sites and lists.

Creating a site or a list needs more than a name, so the arguments are
gathered in small dataclasses which validate themselves before the connector
passes them to the backend.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import InvalidArgumentError


@dataclass
class SiteCreationParameters:
    """Arguments for a new sub-site.

    Attributes:
        name: URL name of the site; the title is used when it is empty
        title: Display title
        description: Optional description
        template: Site template identifier (e.g., "STS#0")
        language: Language identifier (0 means the parent's)
        locale: Locale identifier (0 means the parent's)
        collation_locale: Collation locale identifier (0 means the parent's)
        unique_permissions: Break permission inheritance if True
        anonymous: Allow anonymous access if True
        presence: Show online presence if True
    """
    name: str = ""
    title: str = ""
    description: str = ""
    template: str = ""
    language: int = 0
    locale: int = 0
    collation_locale: int = 0
    unique_permissions: Optional[bool] = None
    anonymous: Optional[bool] = None
    presence: Optional[bool] = None

    @property
    def effective_name(self) -> str:
        return self.name or self.title

    def check(self) -> None:
        """Validate the parameters.

        Raises:
            InvalidArgumentError: If neither name nor title, or no template is set
        """
        if not self.name and not self.title:
            raise InvalidArgumentError(
                "name", "the name or title of the new site must be set"
            )
        if "/" in self.effective_name:
            raise InvalidArgumentError(
                "name", f"site name '{self.effective_name}' cannot contain a slash"
            )
        if not self.template:
            raise InvalidArgumentError(
                "template", "the template of the new site must be specified"
            )


@dataclass
class ListCreationParameters:
    """Arguments for a new list.

    Attributes:
        name: Site-relative name; "Group/Name" places the list in a container group
        description: Optional description
        template: Numeric list template (100 generic list, 101 document library)
        library: Create a document library which can hold files
    """
    name: str = ""
    description: str = ""
    template: int = 0
    library: bool = False

    def check(self) -> None:
        """Validate the parameters.

        Raises:
            InvalidArgumentError: If the name is empty or no template is set
        """
        if not self.name or not self.name.strip("/ "):
            raise InvalidArgumentError("name", "the name of the new list must be provided")
        if self.template == 0:
            raise InvalidArgumentError(
                "template", "the template of the new list must be specified"
            )
