from olda.db import Base, engine
# До create_all обязательно импортируем модели:
import olda.models  # noqa

Base.metadata.create_all(bind=engine)
print("DB created at:", engine.url)
