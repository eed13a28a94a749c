type FilePathStr = str
type FileContentsStr = str
type DeclName = str
type PathGlob = str
