from enum import Enum


class SearchType(str, Enum):
    NAME = "name"
    HASHTAG = "hashtag"
