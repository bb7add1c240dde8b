from repo_records import RecordRepo
from settings import settings

repo = RecordRepo(settings.data_file)
print('stored records:', repo.count())
