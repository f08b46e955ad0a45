"""feed/ -- Posts: the owned resource both surfaces read and write.

Layer rule: feed/ may import from auth/ and core/, never from api/ or web/.
"""
