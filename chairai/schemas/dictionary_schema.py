# chairai/schemas/dictionary_schema.py
from pydantic import BaseModel, ConfigDict

class DictionaryItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str

class CategoryOut(DictionaryItemOut):
    pass

class MaterialOut(DictionaryItemOut):
    pass

class SpecializationOut(DictionaryItemOut):
    pass
