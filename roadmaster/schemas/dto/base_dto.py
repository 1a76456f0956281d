from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class CamelDTO(BaseModel):
    '''
    Request payloads arrive with the project document's camelCase keys;
    fields are declared snake_case with a camelCase alias.
    '''
    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        """camelCase dict ready to be merged into a project document."""
        return self.model_dump(by_alias=True, exclude_none=True)
